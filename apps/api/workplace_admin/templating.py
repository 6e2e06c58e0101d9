"""Server-rendered pages (Jinja2)."""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates

from workplace_admin.core.config import settings

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

NAVIGATION = [
    {"name": "Users", "path": "/admin/users"},
    {"name": "Communities", "path": "/admin/communities"},
    {"name": "Callbacks", "path": "/callbacks"},
]


def app_context() -> dict[str, Any]:
    """Values the install dialogs need on the admin and login pages."""
    return {
        "appID": settings.APP_ID,
        "graphVersion": settings.GRAPH_VERSION,
        "redirectURI": settings.APP_REDIRECT,
        "userRedirectURI": settings.APP_USER_REDIRECT,
    }


def render(
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
):
    page_context = {"navigation": NAVIGATION}
    page_context.update(context or {})
    return templates.TemplateResponse(
        request, name, page_context, status_code=status_code
    )


def render_error(request: Request, message: str, status_code: int):
    return render(request, "error.html", {"message": message}, status_code=status_code)
