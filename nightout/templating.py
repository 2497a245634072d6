from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from . import presenters
from .toasts import pop_toasts

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(
    hotel_card=presenters.hotel_card,
    status_badge_variant=presenters.status_badge_variant,
    admin_actions=presenters.admin_actions,
)


def render(request: Request, name: str, context: dict | None = None, status_code: int = 200):
    """Renders a page with the header state and any queued toasts."""
    state = getattr(request.state, "session_state", None)
    page_context = {
        "session_state": state,
        "nav_links": presenters.nav_links(state),
        "toasts": pop_toasts(request),
    }
    page_context.update(context or {})
    return templates.TemplateResponse(request, name, page_context, status_code=status_code)
