from .auth import SessionState
from .config import settings
from .models import HotelStatus
from .schemas import Hotel


def hotel_card(hotel: Hotel) -> dict:
    return {
        "id": hotel.id,
        "name": hotel.name,
        "location": hotel.location,
        "description": hotel.description or None,
        "image_url": hotel.image_url or settings.DEFAULT_HOTEL_IMAGE,
        "rating_badge": hotel.rating if hotel.rating and hotel.rating > 0 else None,
    }


def status_badge_variant(status: HotelStatus) -> str:
    if status is HotelStatus.APPROVED:
        return "default"
    if status is HotelStatus.REJECTED:
        return "destructive"
    return "secondary"


def admin_actions(hotel: Hotel) -> list[str]:
    actions = ["edit"]
    if hotel.status is not HotelStatus.APPROVED:
        actions.append("approve")
    if hotel.status is not HotelStatus.REJECTED:
        actions.append("reject")
    actions.append("delete")
    return actions


def nav_links(state: SessionState | None) -> list[dict]:
    links = [{"href": "/", "label": "Browse Hotels"}]
    if state and state.is_authenticated:
        links.append({"href": "/submit", "label": "Submit Hotel"})
    if state and state.is_admin:
        links.append({"href": "/admin", "label": "Admin"})
    return links
