"""
Authentication routes for Google OAuth.

SECURITY: Provider tokens only ever travel in HTTP-only cookies. Redirects
back to the frontend carry no token or profile data, and failures carry
only an opaque error code.
"""
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from authrelay.dependencies.auth import (
    get_current_session,
    get_gateway,
    get_session_issuer,
    get_session_store,
)
from authrelay.logging_config import get_logger
from authrelay.models.session import SessionRecord, SessionSummary
from authrelay.routes.metrics import (
    track_login_failed,
    track_login_started,
    track_login_succeeded,
    track_logout,
)
from authrelay.services.auth_gateway import AuthGateway
from authrelay.services.session_issuer import SessionIssuer
from authrelay.services.session_store import SessionStore

logger = get_logger(component="auth_routes")

router = APIRouter(tags=["Authentication"])


class AuthUrlResponse(BaseModel):
    authUrl: str


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    authenticated: bool = True


class MessageResponse(BaseModel):
    message: str


@router.get("/auth/google", response_model=AuthUrlResponse)
async def login_google(gateway: AuthGateway = Depends(get_gateway)):
    """
    Start a login.

    Returns the Google authorization URL; the frontend redirects the
    browser there.
    """
    auth_url = gateway.start_login()
    track_login_started()
    return AuthUrlResponse(authUrl=auth_url)


@router.get("/auth/google/callback", name="google_callback")
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    gateway: AuthGateway = Depends(get_gateway),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    """
    Handle the provider redirect.

    Success sets the session cookies and redirects to the application
    landing page. Failure redirects to the failure page with ``?error=``.
    """
    settings = request.app.state.settings
    attempt = await gateway.complete_login(code=code, state=state, provider_error=error)

    if not attempt.succeeded:
        track_login_failed(attempt.error.code)
        failure_url = f"{settings.login_failure_url}?{urlencode({'error': attempt.error.code})}"
        return RedirectResponse(url=failure_url, status_code=status.HTTP_302_FOUND)

    response = RedirectResponse(url=settings.login_success_url, status_code=status.HTTP_302_FOUND)
    issuer.issue(attempt.session, response)
    track_login_succeeded()
    return response


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(session: SessionRecord = Depends(get_current_session)):
    """Who am I: the profile behind the session cookie, or 401."""
    return ProfileResponse(
        id=session.user_id,
        email=session.email,
        name=session.name,
        picture=session.picture,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    issuer: SessionIssuer = Depends(get_session_issuer),
    session_store: SessionStore = Depends(get_session_store),
):
    """
    Drop the server-side session and clear the cookies.

    Succeeds without a session too, so the frontend can always call it.
    """
    user_id = issuer.read_user_id(request)
    if user_id is not None:
        session_store.remove(user_id)

    response = JSONResponse({"message": "Logged out successfully"})
    issuer.revoke(response)
    track_logout()
    logger.info("logout", had_session=user_id is not None)
    return response


@router.get("/auth/sessions", response_model=list[SessionSummary])
async def list_sessions(
    request: Request,
    session_store: SessionStore = Depends(get_session_store),
):
    """
    Diagnostic listing of live sessions, without tokens.

    Disabled in production.
    """
    if request.app.state.settings.is_production:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return session_store.list()
