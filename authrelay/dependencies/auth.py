"""
Authentication dependencies for FastAPI.

Components are built once per process in ``create_app`` and kept on
``app.state``; these dependencies hand them to the routes.
"""
from fastapi import Depends, Request

from authrelay.errors import NotAuthenticated
from authrelay.models.session import SessionRecord
from authrelay.services.auth_gateway import AuthGateway
from authrelay.services.session_issuer import SessionIssuer
from authrelay.services.session_store import SessionStore


def get_gateway(request: Request) -> AuthGateway:
    return request.app.state.gateway


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


async def get_current_session(
    request: Request,
    issuer: SessionIssuer = Depends(get_session_issuer),
    session_store: SessionStore = Depends(get_session_store),
) -> SessionRecord:
    """
    Dependency that requires a live session.

    The session cookie is only used to look up the server-side record;
    a verified cookie without a record is still unauthenticated.

    Usage:
        @router.get("/protected")
        async def protected_route(session: SessionRecord = Depends(get_current_session)):
            ...
    """
    user_id = issuer.read_user_id(request)
    if user_id is None:
        raise NotAuthenticated("missing or invalid session cookie")

    record = session_store.get(user_id)
    if record is None:
        raise NotAuthenticated("no session record for cookie subject")

    return record
