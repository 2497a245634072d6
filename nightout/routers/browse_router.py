import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from .. import crud
from ..auth import SessionState, resolve_session
from ..backend import BackendError, HostedBackend, get_backend
from ..search import empty_state, filter_hotels
from ..templating import render
from ..toasts import flash

logger = logging.getLogger("nightout.browse")

router = APIRouter(tags=["Browse"])


@router.get("/", response_class=HTMLResponse)
def browse_hotels(
        request: Request,
        q: str = "",
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(resolve_session),
):
    """Public listing of approved hotels, optionally narrowed by ?q=."""
    try:
        hotels = crud.get_approved_hotels(backend)
    except BackendError as e:
        logger.error(f"Failed to fetch approved hotels: {e.message}")
        flash(request, "Error", "Failed to fetch hotels", "destructive")
        hotels = []

    return render(request, "index.html", {
        "hotels": filter_hotels(hotels, q),
        "search_term": q,
        "empty_state": empty_state(q),
    })
