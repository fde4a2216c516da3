"""CORS and access-log middleware."""

import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from teampulse.core.config import settings

logger = logging.getLogger("teampulse.access")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and write one access-log line for it.

    The line names the signed-in user when the authorization gate resolved
    one (``request.state.user_id``), and ``-`` otherwise.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

        user_id = getattr(request.state, "user_id", None) or "-"
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level, "%s %s -> %s in %sms user=%s rid=%s",
            request.method, request.url.path, response.status_code,
            elapsed_ms, user_id, request_id,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    # The session cookie only crosses origins with credentials allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "Content-Disposition"],
    )
    app.add_middleware(RequestIdMiddleware)
