from pathlib import Path

from fastapi.templating import Jinja2Templates

from app.messages import t

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.globals["t"] = t

# message ids that may be passed along a redirect as ?msg=
FLASH_KEYS = frozenset({"login_success", "logout_success"})
