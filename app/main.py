import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from app.backend.base import Backend
from app.config import Settings, get_settings
from app.deps import create_backend
from app.gate import SessionGateMiddleware
from app.routers import auth_router, todo_router, api_router
from app.services.todo_service import ViewRegistry

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    root = logging.getLogger("app")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s:%(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(level)


def create_app(settings: Settings | None = None, backend: Backend | None = None) -> FastAPI:
    settings = settings or get_settings()
    backend = backend or create_backend(settings)
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init = getattr(backend, "init", None)
        if init is not None:
            await init()
        logger.info("todo app started (backend=%s)", settings.backend)
        yield
        await backend.aclose()

    app = FastAPI(title="Todo", lifespan=lifespan)
    app.state.settings = settings
    app.state.backend = backend
    app.state.views = ViewRegistry(backend, settings.locale)
    app.add_middleware(SessionGateMiddleware)

    app.include_router(auth_router.router, tags=["Auth"])
    app.include_router(todo_router.router, prefix="/todos", tags=["Todos"])
    app.include_router(api_router.router, prefix="/api/todos", tags=["API"])

    @app.get("/", include_in_schema=False)
    async def read_root():
        return RedirectResponse(settings.home_path, status_code=303)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
