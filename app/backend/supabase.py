"""Hosted backend: Supabase auth (GoTrue) and tables (PostgREST) over HTTP."""
from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx
from jose import JWTError, jwt

from app.backend.base import AuthError, Backend, BackendError
from app.schemas.auth import Session, User

logger = logging.getLogger(__name__)


def _error_message(res: httpx.Response) -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text or f"HTTP {res.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {res.status_code}"


def _filter_value(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def _filter_params(filters: dict[str, Any]) -> dict[str, str]:
    return {k: ("is.null" if v is None else f"eq.{_filter_value(v)}") for k, v in filters.items()}


class SupabaseBackend(Backend):
    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.client = httpx.AsyncClient(base_url=self.url, timeout=timeout, transport=transport)

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(self, method: str, path: str, *, error_cls=BackendError, **kwargs) -> httpx.Response:
        try:
            res = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("backend %s %s failed: %s", method, path, e)
            raise BackendError(str(e) or e.__class__.__name__) from e
        if res.status_code >= 400:
            message = _error_message(res)
            logger.info("backend %s %s -> %s: %s", method, path, res.status_code, message)
            raise error_cls(message, res.status_code)
        return res

    # ------------------------ Auth ------------------------

    async def sign_up(self, email: str, password: str) -> User:
        res = await self._request(
            "POST", "/auth/v1/signup",
            error_cls=AuthError,
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        data = res.json()
        # autoconfirm projects answer with a session, others with the bare user
        user = data.get("user") or data
        return User(id=user["id"], email=user.get("email", email))

    async def sign_in(self, email: str, password: str) -> Session:
        res = await self._request(
            "POST", "/auth/v1/token",
            error_cls=AuthError,
            params={"grant_type": "password"},
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        data = res.json()
        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = int(time.time()) + int(data["expires_in"])
        return Session(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
            user=User(id=data["user"]["id"], email=data["user"].get("email", email)),
        )

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/auth/v1/logout", error_cls=AuthError, headers=self._headers(access_token))

    async def get_user(self, access_token: str) -> Optional[User]:
        try:
            res = await self._request("GET", "/auth/v1/user", error_cls=AuthError, headers=self._headers(access_token))
        except AuthError as e:
            if e.status in (401, 403):
                return None
            raise
        data = res.json()
        return User(id=data["id"], email=data.get("email", ""))

    def get_session(self, access_token: str | None) -> Optional[Session]:
        if not access_token:
            return None
        try:
            claims = jwt.get_unverified_claims(access_token)
        except JWTError:
            return None
        exp = claims.get("exp")
        if not claims.get("sub") or exp is None or int(exp) <= time.time():
            return None
        return Session(
            access_token=access_token,
            expires_at=int(exp),
            user=User(id=claims["sub"], email=claims.get("email", "")),
        )

    # ------------------------ Tables ------------------------

    async def select(self, access_token, table, filters, order="id.asc"):
        params = {"select": "*", **_filter_params(filters), "order": order}
        res = await self._request("GET", f"/rest/v1/{table}", params=params, headers=self._headers(access_token))
        return res.json()

    async def insert(self, access_token, table, row):
        headers = {**self._headers(access_token), "Prefer": "return=representation"}
        res = await self._request("POST", f"/rest/v1/{table}", json=row, headers=headers)
        rows = res.json()
        if not rows:
            raise BackendError("insert returned no row", res.status_code)
        return rows[0]

    async def update(self, access_token, table, filters, patch):
        headers = {**self._headers(access_token), "Prefer": "return=representation"}
        res = await self._request(
            "PATCH", f"/rest/v1/{table}", params=_filter_params(filters), json=patch, headers=headers
        )
        return res.json()

    async def delete(self, access_token, table, filters):
        await self._request("DELETE", f"/rest/v1/{table}", params=_filter_params(filters), headers=self._headers(access_token))

    async def aclose(self) -> None:
        await self.client.aclose()
