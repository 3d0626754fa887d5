from fastapi import Depends, HTTPException, Request, status

from app.backend.base import Backend, BackendError
from app.config import Settings
from app.messages import t
from app.schemas.auth import Session
from app.services.auth_service import AuthService
from app.services.todo_service import UserViews, ViewRegistry


def create_backend(settings: Settings) -> Backend:
    if settings.backend == "local":
        from app.backend.local import LocalBackend

        return LocalBackend(settings.database_url, settings.service_role_key)
    from app.backend.supabase import SupabaseBackend

    return SupabaseBackend(settings.supabase_url, settings.supabase_anon_key, timeout=settings.backend_timeout)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_backend(request: Request) -> Backend:
    return request.app.state.backend


def get_registry(request: Request) -> ViewRegistry:
    return request.app.state.views


def get_auth_service(request: Request) -> AuthService:
    settings = request.app.state.settings
    return AuthService(request.app.state.backend, settings.locale)


def get_session(request: Request) -> Session | None:
    return getattr(request.state, "session", None)


def require_session(request: Request, session: Session | None = Depends(get_session)) -> Session:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=t("auth_required", request.app.state.settings.locale),
        )
    return session


async def get_views(
    request: Request,
    session: Session = Depends(require_session),
    registry: ViewRegistry = Depends(get_registry),
) -> UserViews:
    # the cookie's claims are unverified; a cached view is only handed out for a token the backend accepts
    try:
        user = await registry.verify(session)
    except BackendError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=t("auth_required", request.app.state.settings.locale),
        )
    return registry.for_user(user.id, session.access_token, session.expires_at)
