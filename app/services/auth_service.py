import logging
from dataclasses import dataclass
from typing import Literal, Optional

from app.backend.base import Backend, BackendError
from app.messages import t
from app.schemas.auth import Session

logger = logging.getLogger(__name__)


@dataclass
class AuthMessage:
    kind: Literal["success", "error"]
    text: str


@dataclass
class AuthResult:
    message: AuthMessage
    session: Optional[Session] = None

    @property
    def ok(self) -> bool:
        return self.message.kind == "success"


class AuthService:
    def __init__(self, backend: Backend, locale: str = "ja"):
        self.backend = backend
        self.locale = locale

    def _error(self, e: BackendError, fallback: str) -> AuthResult:
        return AuthResult(AuthMessage("error", e.message or t(fallback, self.locale)))

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            session = await self.backend.sign_in(email, password)
        except BackendError as e:
            logger.info("sign-in failed for %s: %s", email, e.message)
            return self._error(e, "login_failed")
        logger.info("user %s signed in", session.user.id)
        return AuthResult(AuthMessage("success", t("login_success", self.locale)), session)

    async def sign_up(self, email: str, password: str, confirm_password: str) -> AuthResult:
        if password != confirm_password:
            return AuthResult(AuthMessage("error", t("password_mismatch", self.locale)))
        try:
            user = await self.backend.sign_up(email, password)
        except BackendError as e:
            logger.info("sign-up failed for %s: %s", email, e.message)
            return self._error(e, "signup_failed")
        logger.info("user %s signed up", user.id)
        return AuthResult(AuthMessage("success", t("signup_success", self.locale)))

    async def sign_out(self, access_token: str) -> AuthResult:
        try:
            await self.backend.sign_out(access_token)
        except BackendError as e:
            # the cookie is dropped regardless; the token simply expires server-side
            logger.warning("sign-out at backend failed: %s", e.message)
        return AuthResult(AuthMessage("success", t("logout_success", self.locale)))
