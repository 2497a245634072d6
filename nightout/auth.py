import logging
import time
from dataclasses import dataclass

from fastapi import Depends, Request
from jose import JWTError, jwt
from pydantic import ValidationError

from . import crud, models, schemas
from .backend import BackendError, HostedBackend, get_backend
from .toasts import flash

logger = logging.getLogger("nightout.auth")

SESSION_KEY = "auth"

# Refresh slightly before the token actually lapses
EXPIRY_LEEWAY_SECONDS = 10


class RedirectRequired(Exception):
    """Raised from dependencies to send the browser elsewhere."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


@dataclass
class SessionState:
    """
    The single source of truth for who is browsing. Resolved once per request
    and shared by the page and the header.
    """
    user: dict | None = None
    role: models.RoleCheck = models.RoleCheck.DENIED

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.role is models.RoleCheck.GRANTED

    @property
    def role_check_failed(self) -> bool:
        return self.role is models.RoleCheck.FAILED

    @property
    def user_id(self) -> str | None:
        return self.user["id"] if self.user else None


def store_session(request: Request, session: schemas.UserSession):
    request.session[SESSION_KEY] = session.model_dump()


def clear_session(request: Request):
    request.session.pop(SESSION_KEY, None)


def load_session(request: Request) -> schemas.UserSession | None:
    data = request.session.get(SESSION_KEY)
    if not data:
        return None
    try:
        return schemas.UserSession.model_validate(data)
    except ValidationError:
        logger.warning("Discarding malformed session cookie.")
        clear_session(request)
        return None


def token_expired(access_token: str) -> bool:
    # The backend verifies signatures; here we only need the exp claim
    try:
        claims = jwt.get_unverified_claims(access_token)
    except JWTError:
        return True
    exp = claims.get("exp")
    return exp is not None and exp <= time.time() + EXPIRY_LEEWAY_SECONDS


def check_admin_status(backend: HostedBackend, user_id: str) -> models.RoleCheck:
    try:
        role = crud.get_admin_role(backend, user_id)
    except BackendError as e:
        logger.error(f"Admin role check failed for user {user_id}: {e.message}")
        return models.RoleCheck.FAILED
    return models.RoleCheck.GRANTED if role else models.RoleCheck.DENIED


def _refresh_or_expire(request: Request, backend: HostedBackend, session: schemas.UserSession):
    if session.refresh_token:
        try:
            data = backend.refresh_session(session.refresh_token)
            refreshed = schemas.UserSession.from_auth_response(data)
        except (BackendError, KeyError, ValidationError) as e:
            logger.info(f"Could not refresh session for user {session.user_id}: {e}")
        else:
            store_session(request, refreshed)
            logger.info(f"Refreshed session for user {refreshed.user_id}.")
            return refreshed

    clear_session(request)
    flash(request, "Your session has expired", "Please sign in again.")
    return None


def resolve_session(request: Request, backend: HostedBackend = Depends(get_backend)) -> SessionState:
    state = SessionState()
    session = load_session(request)

    if session and token_expired(session.access_token):
        session = _refresh_or_expire(request, backend, session)

    if session:
        backend.set_auth(session.access_token)
        try:
            state.user = backend.get_user()
        except BackendError as e:
            if e.status_code in (401, 403):
                logger.info(f"Backend rejected the session for user {session.user_id}; signing out.")
                clear_session(request)
                backend.set_auth(None)
                flash(request, "Your session has expired", "Please sign in again.")
            else:
                logger.warning(f"Could not load the current user: {e.message}")

    if state.user:
        state.role = check_admin_status(backend, state.user["id"])

    request.state.session_state = state
    return state


def require_user(state: SessionState = Depends(resolve_session)) -> SessionState:
    if not state.is_authenticated:
        raise RedirectRequired("/auth")
    return state


def require_admin(request: Request, state: SessionState = Depends(require_user)) -> SessionState:
    if state.role_check_failed:
        flash(request, "Error", "Could not verify admin privileges", "destructive")
        raise RedirectRequired("/")
    if not state.is_admin:
        flash(request, "Access Denied", "You don't have admin privileges", "destructive")
        raise RedirectRequired("/")
    return state
