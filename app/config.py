"""Runtime configuration read from the environment (and a local .env file)."""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class ConfigError(RuntimeError):
    """Raised at startup when required configuration is missing."""


def _trueish(v: str | None) -> bool:
    if not v:
        return False
    return v.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    backend: str
    supabase_url: str
    supabase_anon_key: str
    # server-side only, never rendered into a page
    service_role_key: str
    database_url: str
    session_cookie_name: str
    cookie_secure: bool
    protected_prefixes: tuple[str, ...]
    login_path: str
    home_path: str
    locale: str
    log_level: str
    backend_timeout: float


def load_settings() -> Settings:
    backend = os.getenv("BACKEND", "supabase").lower()
    settings = Settings(
        backend=backend,
        supabase_url=os.getenv("SUPABASE_URL", "").rstrip("/"),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
        service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./todo_local.db"),
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "todo_session"),
        cookie_secure=_trueish(os.getenv("COOKIE_SECURE", "0")),
        protected_prefixes=tuple(
            p.strip() for p in os.getenv("PROTECTED_PREFIXES", "/todos").split(",") if p.strip()
        ),
        login_path="/login",
        home_path="/todos",
        locale=os.getenv("LOCALE", "ja"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        backend_timeout=float(os.getenv("BACKEND_TIMEOUT", "10")),
    )
    validate(settings)
    return settings


def validate(settings: Settings) -> None:
    if not settings.service_role_key:
        raise ConfigError("SUPABASE_SERVICE_ROLE_KEY is required on server")
    if settings.backend not in ("supabase", "local"):
        raise ConfigError(f"unknown BACKEND {settings.backend!r} (expected 'supabase' or 'local')")
    if settings.backend == "supabase":
        if not settings.supabase_url:
            raise ConfigError("SUPABASE_URL is required when BACKEND=supabase")
        if not settings.supabase_anon_key:
            raise ConfigError("SUPABASE_ANON_KEY is required when BACKEND=supabase")


@lru_cache
def get_settings() -> Settings:
    return load_settings()
