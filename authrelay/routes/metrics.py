"""
Prometheus metrics endpoint.

Exposes request and login-flow metrics for monitoring.
"""
from fastapi import APIRouter, Request, Response
from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Login Flow Metrics
# ============================================

login_started = Counter(
    'auth_login_started_total',
    'Authorization URLs handed out'
)

login_attempts = Counter(
    'auth_login_attempts_total',
    'Completed OAuth callbacks by outcome',
    ['outcome']
)

login_failures = Counter(
    'auth_login_failures_total',
    'Failed OAuth callbacks by reason',
    ['reason']
)

logouts = Counter(
    'auth_logouts_total',
    'Logout requests'
)

# ============================================
# Store Metrics
# ============================================

pending_states = Gauge(
    'auth_pending_states',
    'State tokens issued and not yet consumed or expired'
)

live_sessions = Gauge(
    'auth_live_sessions',
    'Session records held in memory'
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.

    Called by the logging middleware after each request.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()

    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_login_started():
    login_started.inc()


def track_login_succeeded():
    login_attempts.labels(outcome="success").inc()


def track_login_failed(reason: str):
    """Record a failed callback under its opaque error code."""
    login_attempts.labels(outcome="failure").inc()
    login_failures.labels(reason=reason).inc()


def track_logout():
    logouts.inc()


def update_store_gauges(pending_state_count: int, session_count: int):
    pending_states.set(pending_state_count)
    live_sessions.set(session_count)


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics(request: Request):
    """
    Prometheus metrics endpoint.

    Returns all registered metrics in Prometheus format.
    """
    state = request.app.state
    update_store_gauges(len(state.state_store), len(state.session_store))
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
