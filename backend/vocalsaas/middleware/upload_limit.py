"""
VocalSaaS Backend: Upload Size Guard
=====================================

What:  Rejects oversized voice-sample uploads from their Content-Length
       header, before the multipart body is read.
How:   A declared length above MAX_UPLOAD_SIZE plus MULTIPART_OVERHEAD gets
       413 without calling the route. Requests without a Content-Length
       (chunked transfer) pass through; AudioStorage.read_upload re-checks
       the size while reading them.
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from vocalsaas.config import settings
from vocalsaas.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Boundaries, part headers and the small form fields sent alongside the file
MULTIPART_OVERHEAD = 64 * 1024


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):

    GUARDED_PATHS = {"/api/voice/upload"}

    def __init__(self, app, max_upload_size: Optional[int] = None, **kwargs):
        super().__init__(app, **kwargs)
        self._max_upload_size = max_upload_size

    @property
    def max_upload_size(self) -> int:
        return self._max_upload_size or settings.max_upload_size

    @property
    def max_body_size(self) -> int:
        return self.max_upload_size + MULTIPART_OVERHEAD

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method != "POST" or request.url.path not in self.GUARDED_PATHS:
            return await call_next(request)

        declared = request.headers.get("content-length")
        if declared is None:
            return await call_next(request)

        try:
            length = int(declared)
        except ValueError:
            return self._reject(400, "Invalid Content-Length header")

        if length < 0:
            return self._reject(400, "Invalid Content-Length header")

        if length > self.max_body_size:
            logger.warning(
                "Upload rejected before parsing: %d bytes declared, limit %d",
                length,
                self.max_body_size,
            )
            max_mb = self.max_upload_size / (1024 * 1024)
            return self._reject(
                413,
                f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller recording.",
            )

        return await call_next(request)

    @staticmethod
    def _reject(status_code: int, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"error": message, "request_id": request_id_var.get("")},
        )
