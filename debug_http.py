# debug_http.py
from __future__ import annotations

import logging
import time
from fastapi import Request

logger = logging.getLogger("http")


async def log_requests(request: Request, call_next):
    t0 = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        dt = (time.perf_counter() - t0) * 1000
        logger.exception("[HTTP] !! %s %s -> exception in %.1fms", request.method, request.url.path, dt)
        raise

    dt = (time.perf_counter() - t0) * 1000
    logger.info("[HTTP] %s %s -> %d in %.1fms", request.method, request.url.path, response.status_code, dt)
    return response
