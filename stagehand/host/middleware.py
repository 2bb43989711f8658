# stagehand/host/middleware.py
import logging
import time
from typing import Any, List, Optional

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware import Middleware

logger = logging.getLogger(__name__)


async def request_logger(request: Request, call_next):
    """Access log for every request: method, path, status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
    return response


def default_middleware(
    allow_origins: Optional[List[str]] = None,
    minimum_gzip_size: int = 1000
) -> List[Any]:
    """
    The usual pipeline for a stagehand server, in mount order:
    CORS, gzip compression, then the request logger.
    """
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=allow_origins or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(GZipMiddleware, minimum_size=minimum_gzip_size),
        request_logger,
    ]
