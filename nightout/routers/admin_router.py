import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from .. import crud, models, schemas
from ..auth import SessionState, require_admin
from ..backend import BackendError, HostedBackend, get_backend
from ..templating import render
from ..toasts import flash

logger = logging.getLogger("nightout.admin")

router = APIRouter(prefix="/admin", tags=["Admin"])

# Only the id of the record being edited; the cookie also carries the tokens
EDIT_SESSION_KEY = "admin_editing_id"


def _back_to_console() -> RedirectResponse:
    # The console re-fetches everything on load; no local patching
    return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)


def _clear_edit_buffer(request: Request):
    request.session.pop(EDIT_SESSION_KEY, None)


def _render_console(
        request: Request,
        backend: HostedBackend,
        typed: dict | None = None,
        status_code: int = status.HTTP_200_OK,
):
    """
    Renders the console from a fresh fetch. The edit form shows `typed` when
    given, otherwise the stored values of the record being edited.
    """
    fetched = True
    try:
        hotels = crud.get_all_hotels(backend)
    except BackendError as e:
        logger.error(f"Failed to fetch hotels for admin console: {e.message}")
        flash(request, "Error", "Failed to fetch hotels", "destructive")
        hotels = []
        fetched = False

    editing = None
    editing_id = request.session.get(EDIT_SESSION_KEY)
    if editing_id:
        current = next((hotel for hotel in hotels if hotel.id == editing_id), None)
        if typed is not None:
            editing = {"id": editing_id, "form": typed}
        elif current is not None:
            editing = {"id": editing_id, "form": schemas.HotelUpdate.from_hotel(current).model_dump()}
        elif fetched:
            # The record is gone
            _clear_edit_buffer(request)

    return render(request, "admin.html", {
        "hotels": hotels,
        "editing": editing,
    }, status_code=status_code)


@router.get("", response_class=HTMLResponse)
def admin_dashboard(
        request: Request,
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(require_admin),
):
    return _render_console(request, backend)


@router.post("/hotels/cancel")
def cancel_editing(request: Request, state: SessionState = Depends(require_admin)):
    _clear_edit_buffer(request)
    return _back_to_console()


@router.post("/hotels/{hotel_id}/status")
def set_hotel_status(
        hotel_id: str,
        request: Request,
        new_status: str = Form(..., alias="status"),
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(require_admin),
):
    try:
        target = models.HotelStatus(new_status)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown status: {new_status}")

    try:
        updated = crud.update_hotel_status(backend, hotel_id, target)
    except BackendError as e:
        logger.error(f"Failed to set hotel {hotel_id} to {target.value}: {e.message}")
        flash(request, "Error", "Failed to update hotel status", "destructive")
        return _back_to_console()

    if not updated:
        flash(request, "Error", "Hotel not found", "destructive")
    else:
        logger.info(f"Admin {state.user_id} set hotel {hotel_id} to {target.value}.")
        flash(request, f"Hotel {target.value}!")
    return _back_to_console()


@router.post("/hotels/{hotel_id}/delete")
def delete_hotel(
        hotel_id: str,
        request: Request,
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(require_admin),
):
    try:
        deleted = crud.delete_hotel(backend, hotel_id)
    except BackendError as e:
        logger.error(f"Failed to delete hotel {hotel_id}: {e.message}")
        flash(request, "Error", "Failed to delete hotel", "destructive")
        return _back_to_console()

    if not deleted:
        flash(request, "Error", "Hotel not found", "destructive")
        return _back_to_console()

    if request.session.get(EDIT_SESSION_KEY) == hotel_id:
        _clear_edit_buffer(request)
    logger.info(f"Admin {state.user_id} deleted hotel {hotel_id}.")
    flash(request, "Hotel deleted successfully")
    return _back_to_console()


@router.post("/hotels/{hotel_id}/edit")
def start_editing(
        hotel_id: str,
        request: Request,
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(require_admin),
):
    """Puts the record in edit mode, replacing any other. The form is filled from the next fetch."""
    try:
        hotel = crud.get_hotel(backend, hotel_id)
    except BackendError as e:
        logger.error(f"Failed to load hotel {hotel_id} for editing: {e.message}")
        flash(request, "Error", "Failed to load hotel", "destructive")
        return _back_to_console()

    if hotel is None:
        flash(request, "Error", "Hotel not found", "destructive")
        return _back_to_console()

    request.session[EDIT_SESSION_KEY] = hotel_id
    return _back_to_console()


@router.post("/hotels/{hotel_id}/save")
def save_edit(
        hotel_id: str,
        request: Request,
        name: str = Form(""),
        location: str = Form(""),
        description: str = Form(""),
        image_url: str = Form(""),
        price_per_night: str = Form(""),
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(require_admin),
):
    typed = {
        "name": name,
        "location": location,
        "description": description,
        "image_url": image_url,
        "price_per_night": price_per_night,
    }

    # Failed saves re-render in place so the typed values never enter the cookie
    try:
        changes = schemas.HotelUpdate(**typed)
    except ValidationError as e:
        request.session[EDIT_SESSION_KEY] = hotel_id
        flash(request, "Validation Error", schemas.first_error_message(e), "destructive")
        return _render_console(request, backend, typed, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        updated = crud.update_hotel(backend, hotel_id, changes)
    except BackendError as e:
        logger.error(f"Failed to update hotel {hotel_id}: {e.message}")
        request.session[EDIT_SESSION_KEY] = hotel_id
        flash(request, "Error", "Failed to update hotel", "destructive")
        return _render_console(request, backend, typed, status_code=status.HTTP_502_BAD_GATEWAY)

    _clear_edit_buffer(request)
    if not updated:
        flash(request, "Error", "Hotel not found", "destructive")
        return _back_to_console()
    logger.info(f"Admin {state.user_id} updated hotel {hotel_id}.")
    flash(request, "Hotel updated successfully!")
    return _back_to_console()
