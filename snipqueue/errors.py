# snipqueue/errors.py

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PermissionDenied(Exception):
    def __init__(self, detail: str = "Forbidden", uid: str = None):
        super().__init__(detail)
        self.detail = detail
        self.uid = uid


async def permission_denied_handler(request: Request, exc: PermissionDenied):
    # Single place where every denial is reported
    logger.warning(f"Permission denied for uid={exc.uid} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=403, content={"detail": exc.detail})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Something went wrong.", "retry": True},
    )


def register_error_handlers(app):
    app.add_exception_handler(PermissionDenied, permission_denied_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
