from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

TEMPLATES_DIR = Path(__file__).parent / "templates"
WEB_ROOT = Path(__file__).parent / "wwwroot"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

TEMP_DATA_KEY = "_temp_data"


def set_temp_data(request: Request, key: str, message: str) -> None:
    """Store a one-shot message shown by the next rendered view."""
    temp_data = request.session.setdefault(TEMP_DATA_KEY, {})
    temp_data[key] = message
    request.session[TEMP_DATA_KEY] = temp_data


def render(
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
) -> Response:
    context = dict(context or {})
    context.setdefault("temp_data", request.session.pop(TEMP_DATA_KEY, {}))
    return templates.TemplateResponse(request, name, context, status_code=status_code)
