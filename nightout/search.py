from typing import Iterable

from .schemas import Hotel


def filter_hotels(hotels: Iterable[Hotel], search_term: str | None) -> list[Hotel]:
    """
    Case-insensitive substring match on name or location. The input is left
    untouched; an empty term keeps every listing.
    """
    term = (search_term or "").lower()
    return [
        hotel for hotel in hotels
        if term in hotel.name.lower() or term in hotel.location.lower()
    ]


def empty_state(search_term: str | None) -> dict:
    if search_term:
        return {
            "title": "No hotels found",
            "message": "Try adjusting your search terms",
            "show_cta": False,
        }
    return {
        "title": "No hotels yet",
        "message": "Be the first to suggest a hotel for the community!",
        "show_cta": True,
    }
