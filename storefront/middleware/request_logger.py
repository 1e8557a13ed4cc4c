# storefront/middleware/request_logger.py
import logging
import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("storefront.requests")

REQUEST_ID_HEADER = "x-request-id"


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s %s failed [%s]", request.method, request.url.path, request_id)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        # user is set on request.state by get_current_user, if the route needed one
        user = getattr(request.state, "user", None)
        logger.info(
            "%s %s -> %s in %.1fms user=%s [%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            getattr(user, "username", "-"),
            request_id,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
