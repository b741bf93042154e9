import time
import logging
from fastapi import Request

logger = logging.getLogger("access")

# health checks would drown the access log
QUIET_PATHS = {"/"}


async def request_logging_middleware(request: Request, call_next):
    started = time.perf_counter()

    response = await call_next(request)

    if request.url.path in QUIET_PATHS:
        return response

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    user_id = getattr(request.state, "user_id", None)

    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "",
        extra={
            "client_addr": request.client.host if request.client else "unknown",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": elapsed_ms,
            "user_id": user_id,
        },
    )

    return response
