"""
Jinja2 templates shared by the page routers.
"""
from pathlib import Path
from urllib.parse import urlencode

from fastapi.templating import Jinja2Templates
from starlette.responses import RedirectResponse

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def redirect(path: str, **query: str) -> RedirectResponse:
    """303 redirect after a form post, with an encoded query string."""
    url = f"{path}?{urlencode(query)}" if query else path
    return RedirectResponse(url, status_code=303)
