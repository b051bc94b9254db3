"""Request logging middleware"""

import logging
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("src.api.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every request"""

    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.time() - start_time
            logger.error(f"{request.method} {request.url.path} raised after {duration:.3f}s")
            raise

        duration = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {duration:.3f}s")
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response
