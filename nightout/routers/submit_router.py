import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from .. import crud, schemas
from ..auth import SessionState, require_user
from ..backend import BackendError, HostedBackend, get_backend
from ..templating import render
from ..toasts import flash

logger = logging.getLogger("nightout.submit")

router = APIRouter(prefix="/submit", tags=["Submit"])


def _form_values(name="", location="", description="", image_url="", price_per_night="") -> dict:
    return {
        "name": name,
        "location": location,
        "description": description,
        "image_url": image_url,
        "price_per_night": price_per_night,
    }


def _has_file(image: UploadFile | None) -> bool:
    return image is not None and bool(image.filename)


def _upload_image(request: Request, backend: HostedBackend, image: UploadFile) -> str | None:
    """
    Uploads the selected file and returns its public URL, or None after
    reporting the failure. Never blocks the rest of the form.
    """
    try:
        url = crud.upload_hotel_image(backend, image.filename, image.file.read(), image.content_type)
    except BackendError as e:
        logger.warning(f"Image upload failed for {image.filename}: {e.message}")
        flash(request, "Upload Error", e.message or "Failed to upload image", "destructive")
        return None
    logger.info(f"Uploaded hotel image to {url}")
    flash(request, "Image uploaded successfully!")
    return url


@router.get("", response_class=HTMLResponse)
def submit_form(request: Request, state: SessionState = Depends(require_user)):
    return render(request, "submit.html", {"form": _form_values()})


@router.post("/upload", response_class=HTMLResponse)
def upload_image(
        request: Request,
        name: str = Form(""),
        location: str = Form(""),
        description: str = Form(""),
        image_url: str = Form(""),
        price_per_night: str = Form(""),
        image: UploadFile | None = File(None),
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(require_user),
):
    values = _form_values(name, location, description, image_url, price_per_night)
    if not _has_file(image):
        flash(request, "Upload Error", "Choose an image to upload", "destructive")
        return render(request, "submit.html", {"form": values}, status_code=status.HTTP_400_BAD_REQUEST)

    uploaded = _upload_image(request, backend, image)
    if uploaded:
        values["image_url"] = uploaded
    return render(request, "submit.html", {"form": values})


@router.post("", response_class=HTMLResponse)
def submit_hotel(
        request: Request,
        name: str = Form(""),
        location: str = Form(""),
        description: str = Form(""),
        image_url: str = Form(""),
        price_per_night: str = Form(""),
        image: UploadFile | None = File(None),
        backend: HostedBackend = Depends(get_backend),
        state: SessionState = Depends(require_user),
):
    """
    Creates a pending listing owned by the current user. A selected file is
    uploaded first unless an image URL was typed by hand.
    """
    values = _form_values(name, location, description, image_url, price_per_night)

    if _has_file(image) and not image_url:
        uploaded = _upload_image(request, backend, image)
        if uploaded:
            values["image_url"] = uploaded

    try:
        hotel = schemas.HotelCreate(
            name=values["name"],
            location=values["location"],
            description=values["description"],
            image_url=values["image_url"],
            price_per_night=values["price_per_night"] or 0,
        )
    except ValidationError as e:
        flash(request, "Validation Error", schemas.first_error_message(e), "destructive")
        return render(request, "submit.html", {"form": values}, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        crud.create_hotel(backend, hotel, state.user_id)
    except BackendError as e:
        logger.error(f"Failed to submit hotel '{hotel.name}' for user {state.user_id}: {e.message}")
        flash(request, "Error", e.message or "Failed to submit hotel", "destructive")
        return render(request, "submit.html", {"form": values}, status_code=status.HTTP_502_BAD_GATEWAY)

    logger.info(f"User {state.user_id} submitted hotel '{hotel.name}' for review.")
    flash(request, "Hotel submitted for review!")
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
