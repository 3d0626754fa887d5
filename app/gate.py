"""Session gate: keeps anonymous requests out of the protected pages and
signed-in users off the login page."""
import enum
import logging
from typing import Iterable

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class GateDecision(enum.Enum):
    PASS = "pass"
    TO_LOGIN = "to_login"
    TO_HOME = "to_home"


def is_protected(path: str, prefixes: Iterable[str]) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


def decide(path: str, has_session: bool, protected_prefixes: Iterable[str] = ("/todos",), login_path: str = "/login") -> GateDecision:
    if is_protected(path, protected_prefixes) and not has_session:
        return GateDecision.TO_LOGIN
    if path == login_path and has_session:
        return GateDecision.TO_HOME
    return GateDecision.PASS


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Resolves the session cookie once per request into ``request.state.session``."""

    async def dispatch(self, request: Request, call_next):
        settings = request.app.state.settings
        backend = request.app.state.backend
        token = request.cookies.get(settings.session_cookie_name)
        session = backend.get_session(token)
        request.state.session = session

        decision = decide(request.url.path, session is not None, settings.protected_prefixes, settings.login_path)
        if decision is GateDecision.PASS:
            return await call_next(request)

        target = settings.login_path if decision is GateDecision.TO_LOGIN else settings.home_path
        logger.debug("gate: %s %s -> %s", request.method, request.url.path, target)
        res = RedirectResponse(target, status_code=303)
        if token and session is None:
            # stale or tampered cookie
            res.delete_cookie(settings.session_cookie_name, path="/")
        return res
