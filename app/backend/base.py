"""Interface of the hosted data/auth service the app delegates to.

Every table call takes the caller's access token. Implementations enforce
that a token only ever reaches rows whose ``user_id`` is the token's user;
callers still pass the owner filter explicitly on every call that touches
existing rows.
"""
from __future__ import annotations

import abc
from typing import Any, Optional

from app.schemas.auth import Session, User

TODOS = "todos"


class BackendError(Exception):
    """A failed backend call. ``message`` is the backend's own error text."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class AuthError(BackendError):
    """Bad credentials, unknown or expired token, rejected sign-up."""


class Backend(abc.ABC):
    # ------------------------ Auth ------------------------

    @abc.abstractmethod
    async def sign_up(self, email: str, password: str) -> User:
        ...

    @abc.abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        ...

    @abc.abstractmethod
    async def sign_out(self, access_token: str) -> None:
        ...

    @abc.abstractmethod
    async def get_user(self, access_token: str) -> Optional[User]:
        """Validate the token with the backend. None when it is not valid."""

    @abc.abstractmethod
    def get_session(self, access_token: str | None) -> Optional[Session]:
        """Read the session carried by a token without a round trip.

        Only checks shape and expiry; use :meth:`get_user` before trusting it.
        """

    # ------------------------ Tables ------------------------

    @abc.abstractmethod
    async def select(
        self,
        access_token: str,
        table: str,
        filters: dict[str, Any],
        order: str = "id.asc",
    ) -> list[dict[str, Any]]:
        ...

    @abc.abstractmethod
    async def insert(self, access_token: str, table: str, row: dict[str, Any]) -> dict[str, Any]:
        ...

    @abc.abstractmethod
    async def update(
        self,
        access_token: str,
        table: str,
        filters: dict[str, Any],
        patch: dict[str, Any],
    ) -> list[dict[str, Any]]:
        ...

    @abc.abstractmethod
    async def delete(self, access_token: str, table: str, filters: dict[str, Any]) -> None:
        ...

    async def aclose(self) -> None:
        return None
