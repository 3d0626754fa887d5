import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from app.backend.base import BackendError
from app.config import Settings
from app.deps import get_auth_service, get_registry, get_session, get_settings
from app.messages import t
from app.schemas.auth import Session
from app.services.auth_service import AuthMessage, AuthService
from app.services.todo_service import ViewRegistry
from app.templating import FLASH_KEYS, templates

logger = logging.getLogger(__name__)

router = APIRouter()


def render_login(request: Request, settings: Settings, *, mode: str = "login", email: str = "",
                 message: AuthMessage | None = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"locale": settings.locale, "mode": mode, "email": email, "message": message},
        status_code=status_code,
    )


@router.get("/login")
async def login_page(request: Request, mode: str = "login", msg: str | None = None,
                     settings: Settings = Depends(get_settings)):
    message = AuthMessage("success", t(msg, settings.locale)) if msg in FLASH_KEYS else None
    return render_login(request, settings, mode="signup" if mode == "signup" else "login", message=message)


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    settings: Settings = Depends(get_settings),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.sign_in(email, password)
    if not result.ok:
        return render_login(request, settings, email=email, message=result.message, status_code=400)
    res = RedirectResponse(f"{settings.home_path}?msg=login_success", status_code=303)
    res.set_cookie(
        settings.session_cookie_name,
        result.session.access_token,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    return res


@router.post("/signup")
async def signup(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    confirm_password: str = Form(...),
    settings: Settings = Depends(get_settings),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.sign_up(email, password, confirm_password)
    if not result.ok:
        return render_login(request, settings, mode="signup", email=email, message=result.message, status_code=400)
    return render_login(request, settings, mode="login", email=email, message=result.message)


@router.post("/logout")
async def logout(
    session: Session | None = Depends(get_session),
    settings: Settings = Depends(get_settings),
    auth: AuthService = Depends(get_auth_service),
    registry: ViewRegistry = Depends(get_registry),
):
    if session is not None:
        try:
            user = await registry.verify(session)
        except BackendError as e:
            logger.warning("could not verify session before sign-out: %s", e.message)
            user = None
        await auth.sign_out(session.access_token)
        if user is not None:
            registry.discard(user.id)
    res = RedirectResponse(f"{settings.login_path}?msg=logout_success", status_code=303)
    res.delete_cookie(settings.session_cookie_name, path="/")
    return res
