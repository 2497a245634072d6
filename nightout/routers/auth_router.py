import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from .. import schemas
from ..auth import SessionState, load_session, resolve_session, store_session
from ..backend import BackendError, HostedBackend, get_backend
from ..templating import render
from ..toasts import flash

logger = logging.getLogger("nightout.auth")

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("", response_class=HTMLResponse)
def auth_page(request: Request, state: SessionState = Depends(resolve_session)):
    if state.is_authenticated:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    return render(request, "auth.html", {"email": ""})


@router.post("", response_class=HTMLResponse)
def authenticate(
        request: Request,
        email: str = Form(...),
        password: str = Form(...),
        mode: str = Form("signin"),
        backend: HostedBackend = Depends(get_backend),
):
    signing_up = mode == "signup"
    try:
        if signing_up:
            data = backend.sign_up(email, password)
        else:
            data = backend.sign_in(email, password)
    except BackendError as e:
        logger.info(f"{'Sign up' if signing_up else 'Sign in'} failed for {email}: {e.message}")
        title = "Sign up failed" if signing_up else "Sign in failed"
        flash(request, title, e.message, "destructive")
        return render(
            request, "auth.html", {"email": email},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if not data.get("access_token"):
        # The backend wants the address confirmed before issuing a session
        flash(request, "Check your email to confirm your account")
        return RedirectResponse("/auth", status_code=status.HTTP_303_SEE_OTHER)

    try:
        session = schemas.UserSession.from_auth_response(data)
    except (KeyError, ValidationError) as e:
        logger.error(f"Unexpected auth response for {email}: {e}")
        flash(request, "Error", "Unexpected response from the sign-in service", "destructive")
        return render(
            request, "auth.html", {"email": email},
            status_code=status.HTTP_502_BAD_GATEWAY,
        )

    store_session(request, session)
    logger.info(f"User {session.user_id} signed in.")
    flash(request, "Account created!" if signing_up else "Welcome back!")
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/signout")
def sign_out(request: Request, backend: HostedBackend = Depends(get_backend)):
    session = load_session(request)
    if session:
        backend.set_auth(session.access_token)
        try:
            backend.sign_out()
        except BackendError as e:
            # The local session is dropped regardless
            logger.warning(f"Backend sign-out failed for user {session.user_id}: {e.message}")
        logger.info(f"User {session.user_id} signed out.")

    request.session.clear()
    flash(request, "Signed out successfully")
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
