"""
Sentry configuration for error tracking.

Captures unhandled exceptions. Cookies and bearer headers are stripped
from every event before it leaves the process.
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from authrelay.config import Settings
from authrelay.logging_config import get_logger

logger = get_logger(component="sentry")

SCRUBBED_HEADERS = frozenset({"cookie", "authorization", "set-cookie"})


def configure_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry with the FastAPI integration.

    Returns:
        True if Sentry was enabled, False when SENTRY_DSN is unset
    """
    dsn = settings.SENTRY_DSN

    if not dsn:
        logger.info("sentry_disabled", reason="SENTRY_DSN not set")
        return False

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FastApiIntegration()],
        before_send=scrub_event,
        send_default_pii=False,
        # Sample rate: capture 10% of transactions for performance monitoring
        traces_sample_rate=0.1,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
    )

    logger.info("sentry_enabled", environment=settings.ENVIRONMENT)
    return True


def scrub_event(event, hint):
    """
    Remove session credentials from an error event.

    The callback query string carries the authorization code, so it goes too.
    """
    request = event.get("request")
    if not request:
        return event

    request.pop("cookies", None)
    request.pop("query_string", None)
    headers = request.get("headers")
    if isinstance(headers, dict):
        request["headers"] = {
            name: value for name, value in headers.items() if name.lower() not in SCRUBBED_HEADERS
        }
    return event


def capture_exception(exc_info=None):
    """
    Capture an exception to Sentry.

    Usage:
        try:
            # some code
        except Exception:
            capture_exception()
    """
    if sentry_sdk.get_client().is_active():
        sentry_sdk.capture_exception(exc_info)
