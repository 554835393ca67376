"""
authrelay - OAuth 2.0 authorization-code relay for a single-page frontend

FastAPI application entry point.
"""
import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authrelay.config import Settings, settings as default_settings
from authrelay.errors import AuthError
from authrelay.logging_config import configure_logging, get_logger
from authrelay.middleware.logging import LoggingMiddleware
from authrelay.routes.auth import router as auth_router
from authrelay.routes.health import router as health_router
from authrelay.routes.metrics import router as metrics_router
from authrelay.sentry_config import capture_exception, configure_sentry
from authrelay.services.auth_gateway import AuthGateway
from authrelay.services.oauth_client import GoogleOAuthClient
from authrelay.services.session_issuer import SessionIssuer
from authrelay.services.session_store import InMemorySessionStore, SessionStore
from authrelay.services.state_store import InMemoryStateStore, StateStore

logger = get_logger(component="app")


async def sweep_expired(app: FastAPI, interval: float):
    """Periodically purge expired state tokens and sessions."""
    while True:
        await asyncio.sleep(interval)
        try:
            states = app.state.state_store.purge_expired()
            sessions = app.state.session_store.purge_expired()
        except Exception as e:
            logger.error("sweep_failed", error_type=type(e).__name__, exc_info=e)
            capture_exception(e)
            continue
        if states or sessions:
            logger.info("expired_entries_swept", states=states, sessions=sessions)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    logger.info(
        "startup",
        environment=settings.ENVIRONMENT,
        frontend_url=settings.FRONTEND_URL,
        backend_url=settings.BACKEND_URL,
        redirect_uri=settings.GOOGLE_REDIRECT_URI,
        cookie_domain=app.state.session_issuer.policy.domain or "host-only",
        cookie_secure=app.state.session_issuer.policy.secure,
        cookie_samesite=app.state.session_issuer.policy.samesite,
    )
    if not settings.GOOGLE_CLIENT_ID or not settings.GOOGLE_CLIENT_SECRET:
        logger.warning("google_credentials_missing")

    sweeper = asyncio.create_task(sweep_expired(app, settings.SWEEP_INTERVAL_SECONDS))
    try:
        yield
    finally:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        finally:
            await app.state.oauth_client.aclose()
            logger.info("shutdown")


async def auth_error_handler(request: Request, exc: AuthError):
    """Protected routes answer with the opaque code, never internal detail."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, error_type=type(exc).__name__, exc_info=exc)
    capture_exception(exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    settings: Settings | None = None,
    oauth_client: GoogleOAuthClient | None = None,
    state_store: StateStore | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """
    Build the application and its components.

    The stores and the OAuth client are constructed once here and shared by
    every request; tests pass their own.
    """
    settings = settings or default_settings

    configure_logging(debug=settings.DEBUG)
    configure_sentry(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="OAuth 2.0 authorization-code relay between a single-page frontend and Google",
        lifespan=lifespan,
    )

    # Empty stores are falsy, so test for None explicitly.
    if state_store is None:
        state_store = InMemoryStateStore(
            ttl_seconds=settings.STATE_TTL_SECONDS,
            max_entries=settings.STATE_MAX_ENTRIES,
        )
    if session_store is None:
        session_store = InMemorySessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS)
    if oauth_client is None:
        oauth_client = GoogleOAuthClient(settings)

    app.state.settings = settings
    app.state.state_store = state_store
    app.state.session_store = session_store
    app.state.oauth_client = oauth_client
    app.state.session_issuer = SessionIssuer(settings)
    app.state.gateway = AuthGateway(state_store, session_store, oauth_client)

    app.add_middleware(LoggingMiddleware)

    # Allow the frontend to send cookies
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(auth_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("authrelay.main:app", host="0.0.0.0", port=default_settings.PORT)
