"""Request ID middleware and access logging."""

import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Client-supplied ids are echoed into logs and headers; keep them short and plain
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _incoming_request_id(request: Request) -> str:
    candidate = request.headers.get(REQUEST_ID_HEADER, "")
    if _SAFE_REQUEST_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and log its outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _incoming_request_id(request)
        request.state.request_id = request_id

        log_fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "user_id": request.headers.get("X-User-Id"),
        }
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                extra={
                    **log_fields,
                    "status_code": 500,
                    "latency_ms": int((time.perf_counter() - start_time) * 1000),
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "request_completed",
            extra={
                **log_fields,
                "status_code": response.status_code,
                "latency_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return response
