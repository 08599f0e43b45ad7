"""
Request Logging Middleware
Tags every request with an ID and logs scan traffic with timings
"""
import time
import uuid
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger

from idscan.config import settings


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log API requests and their durations
    """

    # Paths to exclude from detailed logging
    EXCLUDE_PATHS = {"/health", "/", "/docs", "/redoc", "/openapi.json"}

    # Image-carrying endpoints, logged at INFO even on success
    UPLOAD_PATHS = {
        "/api/ocr", "/api/ocr/multipass", "/api/ocr/vision", "/api/ocr/scan"
    }

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        if request.url.path in self.EXCLUDE_PATHS:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        start_time = time.time()

        if settings.AUDIT_LOG_ENABLED:
            logger.info(
                f"API Request: request_id={request_id} method={request.method} "
                f"path={request.url.path} client_ip={self._get_client_ip(request)} "
                f"content_length={request.headers.get('Content-Length', '-')}"
            )

        try:
            response = await call_next(request)

            duration_ms = int((time.time() - start_time) * 1000)
            response_log = {
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms
            }

            if request.url.path in self.UPLOAD_PATHS:
                logger.info(f"OCR Response: {response_log}")
            elif settings.AUDIT_LOG_ENABLED:
                logger.debug(f"API Response: {response_log}")

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"

            return response

        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"API Error: request_id={request_id} path={request.url.path} "
                f"error={str(e)} duration_ms={duration_ms}"
            )
            raise

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP from request"""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
