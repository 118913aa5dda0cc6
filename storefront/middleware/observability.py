from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.metrics import request_metrics
from storefront.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Correlate, time and count every request.

    A caller-supplied ``X-Request-ID`` is reused. Tenant and user ids are read
    back from ``request.state`` once the route has run.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = correlation_id
        set_request_context(request_id=correlation_id)
        started = time.perf_counter()

        response = None
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            status = response.status_code if response is not None else 500
            tenant_id = _state_id(request, "tenant_id")
            user_id = _state_id(request, "user_id")
            route_path = getattr(request.scope.get("route"), "path", None) or request.url.path

            set_request_context(tenant_id=tenant_id, user_id=user_id)
            request_metrics.observe(route_path, request.method, status, elapsed_ms, tenant_id=tenant_id)
            logger.info(
                "%s %s -> %s",
                request.method,
                route_path,
                status,
                extra={"endpoint": route_path, "method": request.method, "status_code": status, "duration_ms": elapsed_ms},
            )
            clear_request_context()

        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response


def _state_id(request: Request, attribute: str) -> str | None:
    value = getattr(request.state, attribute, None)
    return None if value is None else str(value)
