"""
Request context: request id and latency for every HTTP request
"""

import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from core.logging import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
LATENCY_HEADER = "X-API-Latency-ms"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Injects:
    - request_id (an incoming X-Request-ID header is reused), available as
      request.state.request_id and on every log line of the request
    - api_latency_ms response header
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start_time = time.perf_counter()

        try:
            response: Response = await call_next(request)

            latency_ms = int((time.perf_counter() - start_time) * 1000)
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[LATENCY_HEADER] = str(latency_ms)

            logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({latency_ms}ms)")
            return response
        finally:
            request_id_var.reset(token)
