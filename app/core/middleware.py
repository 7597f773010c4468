import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger("parques.latency")

# Service Level Objectives (SLOs) - Max latency definitions.
# The park detail fans out into one query per dependent collection,
# so it gets the widest budget.
SLO_THRESHOLDS = {
    "/api/v1/parks/dashboard": 1.500,
    "/api/v1/parks/": 1.000,
    "/api/v1/parks": 0.600,
    "/api/v1/assets": 0.600,
    "/api/v1/health": 0.200,
}


def resolve_slo_budget(path: str) -> float:
    """Return the latency budget for ``path``; the longest matching prefix wins."""
    best_match = None
    for slo_path in SLO_THRESHOLDS:
        if path == slo_path or (slo_path.endswith("/") and path.startswith(slo_path)):
            if best_match is None or len(slo_path) > len(best_match):
                best_match = slo_path
    if best_match is None:
        return settings.SLOW_REQUEST_THRESHOLD_SECONDS
    return SLO_THRESHOLDS[best_match]


class LatencyMonitorMiddleware(BaseHTTPMiddleware):
    """
    Middleware to monitor request latency and check against defined SLOs.
    Logs warnings if SLO is breached.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        budget = resolve_slo_budget(request.url.path)
        if process_time > budget:
            logger.warning(
                "SLO_BREACH | Endpoint: %s | Duration: %.4fs | Budget: %.3fs",
                request.url.path,
                process_time,
                budget,
            )

        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add X-Request-ID header for distributed tracing.

    If the client sends X-Request-ID, it is preserved.
    Otherwise, a new UUID is generated.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "REQUEST | id=%s | method=%s | path=%s",
            request_id,
            request.method,
            request.url.path,
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response
