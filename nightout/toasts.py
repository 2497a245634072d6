from fastapi import Request

SESSION_KEY = "_toasts"


def flash(request: Request, title: str, description: str | None = None, variant: str = "default"):
    """Queues a notification for the next rendered page."""
    toasts = request.session.get(SESSION_KEY, [])
    toasts.append({"title": title, "description": description, "variant": variant})
    request.session[SESSION_KEY] = toasts


def pop_toasts(request: Request) -> list[dict]:
    return request.session.pop(SESSION_KEY, [])
