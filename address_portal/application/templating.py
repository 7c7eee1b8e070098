"""
Server-side rendering helpers.

Jinja2 templates live next to this module. Flash notices are one-shot
messages stored in the signed session cookie: a redirecting handler adds
them and the next rendered page consumes them.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from address_portal.shared.types import NoticeLevel

TEMPLATES_DIR = Path(__file__).parent / "templates"
NOTICES_SESSION_KEY = "_notices"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def flash(request: Request, level: NoticeLevel, message: str) -> None:
    """Queue a notice for the next rendered page."""
    notices = request.session.get(NOTICES_SESSION_KEY, [])
    notices.append({"level": level.value, "message": message})
    request.session[NOTICES_SESSION_KEY] = notices


def pop_notices(request: Request) -> List[Dict[str, str]]:
    """Return and clear the queued notices."""
    if "session" not in request.scope:
        return []
    return request.session.pop(NOTICES_SESSION_KEY, [])


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200
) -> Response:
    """Render a template with the pending notices attached."""
    page_context = dict(context or {})
    notices = pop_notices(request)
    if page_context.get("error"):
        notices.append({"level": NoticeLevel.ERROR.value, "message": page_context["error"]})
    page_context["notices"] = notices

    return templates.TemplateResponse(request, name, page_context, status_code=status_code)
