import uuid

from . import models, schemas
from .backend import HostedBackend
from .config import settings


def get_approved_hotels(backend: HostedBackend) -> list[schemas.Hotel]:
    rows = backend.select(
        settings.HOTELS_TABLE,
        filters={"status": models.HotelStatus.APPROVED.value},
        order="created_at",
        descending=True,
    )
    return [schemas.Hotel.model_validate(row) for row in rows]


def get_all_hotels(backend: HostedBackend) -> list[schemas.Hotel]:
    rows = backend.select(settings.HOTELS_TABLE, order="created_at", descending=True)
    return [schemas.Hotel.model_validate(row) for row in rows]


def get_hotel(backend: HostedBackend, hotel_id: str) -> schemas.Hotel | None:
    rows = backend.select(settings.HOTELS_TABLE, filters={"id": hotel_id}, limit=1)
    return schemas.Hotel.model_validate(rows[0]) if rows else None


def get_admin_role(backend: HostedBackend, user_id: str) -> dict | None:
    rows = backend.select(
        settings.ROLES_TABLE,
        columns="role",
        filters={"user_id": user_id, "role": models.UserRole.ADMIN.value},
        limit=1,
    )
    return rows[0] if rows else None


def create_hotel(backend: HostedBackend, hotel: schemas.HotelCreate, user_id: str) -> schemas.Hotel | None:
    rows = backend.insert(settings.HOTELS_TABLE, [hotel.to_row(user_id)])
    return schemas.Hotel.model_validate(rows[0]) if rows else None


def update_hotel_status(backend: HostedBackend, hotel_id: str, status: models.HotelStatus) -> bool:
    """
    Moves a listing to the given status. Any status may follow any other.
    Returns False when no row matched the id.
    """
    rows = backend.update(settings.HOTELS_TABLE, {"status": status.value}, {"id": hotel_id})
    return bool(rows)


def update_hotel(backend: HostedBackend, hotel_id: str, changes: schemas.HotelUpdate) -> bool:
    # HotelUpdate never carries status
    rows = backend.update(settings.HOTELS_TABLE, changes.model_dump(), {"id": hotel_id})
    return bool(rows)


def delete_hotel(backend: HostedBackend, hotel_id: str) -> bool:
    rows = backend.delete(settings.HOTELS_TABLE, {"id": hotel_id})
    return bool(rows)


def upload_hotel_image(backend: HostedBackend, filename: str, content: bytes, content_type: str | None = None) -> str:
    """
    Stores an image under a random name that keeps the original extension
    and returns its public URL.
    """
    extension = filename.rsplit(".", 1)[-1]
    path = f"{uuid.uuid4().hex}.{extension}"
    backend.upload(settings.IMAGE_BUCKET, path, content, content_type)
    return backend.get_public_url(settings.IMAGE_BUCKET, path)
