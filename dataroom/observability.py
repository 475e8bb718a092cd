import logging
from time import perf_counter

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter(
    "dataroom_http_requests_total",
    "HTTP requests handled",
    ["method", "route", "status"],
)
REQUEST_LATENCY = Histogram(
    "dataroom_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "route"],
)
ACCESS_TRANSITIONS = Counter(
    "dataroom_access_transitions_total",
    "Access request status writes",
    ["status"],
)
INVITE_CLAIMS = Counter(
    "dataroom_invite_claims_total",
    "Invite claim attempts",
    ["outcome"],
)


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            elapsed = perf_counter() - started
            route = _route_template(request)
            REQUEST_COUNT.labels(request.method, route, str(status)).inc()
            REQUEST_LATENCY.labels(request.method, route).observe(elapsed)
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                status,
                elapsed * 1000,
            )
