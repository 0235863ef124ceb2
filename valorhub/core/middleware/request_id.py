import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from valorhub.core.logging import latency_bucket_ms, request_id_ctx_var

REQUEST_ID_HEADER = "x-request-id"
MAX_REQUEST_ID_LENGTH = 128

logger = logging.getLogger("valorhub")


def _accept_request_id(incoming):
    # Oversized or non-printable client ids are replaced.
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
        return incoming
    return str(uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, echo it back and log completion."""

    async def dispatch(self, request, call_next):
        rid = _accept_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)

        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            logger.info(
                "request.complete",
                extra={
                    "request_id": rid,
                    "path": request.url.path,
                    "method": request.method,
                    "status": response.status_code,
                    "latency_bucket": latency_bucket_ms((time.perf_counter() - start) * 1000),
                },
            )
        finally:
            request_id_ctx_var.reset(token)
        return response
