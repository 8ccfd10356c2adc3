"""Server-rendered admin dashboard (served at /admin/dashboard)."""
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional
from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response
from apikey_service.models.user import User
from apikey_service.services.key_service import KeyView

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Jinja2Templates autoescapes .html templates
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


templates.env.filters["datetime"] = format_datetime


def render_dashboard(
    request: Request,
    admin_email: str,
    users: Iterable[User],
    keys: Iterable[KeyView]
) -> Response:
    """Render users and keys with their online/offline status."""
    context = {
        "admin_email": admin_email,
        "users": list(users),
        "keys": list(keys),
    }
    return templates.TemplateResponse(request, "dashboard.html", context)
