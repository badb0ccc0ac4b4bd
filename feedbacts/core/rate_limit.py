"""Per-client request limits for the login, signup and submission endpoints.

Counters live in process memory and are keyed by client address.
"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from feedbacts.core.config import settings

logger = logging.getLogger(__name__)

AUTH_LIMIT = f"{settings.AUTH_RATE_LIMIT_MAX} per {settings.RATE_LIMIT_WINDOW_MINUTES} minutes"
FORM_SUBMIT_LIMIT = f"{settings.FORM_SUBMIT_RATE_LIMIT_PER_HOUR} per hour"

AUTH_LIMIT_MESSAGE = "Too many authentication attempts, please try again later."
FORM_SUBMIT_LIMIT_MESSAGE = "Too many form submissions, please try again later."

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def auth_rate_limit():
    return limiter.limit(AUTH_LIMIT, error_message=AUTH_LIMIT_MESSAGE)


def form_submit_rate_limit():
    return limiter.limit(FORM_SUBMIT_LIMIT, error_message=FORM_SUBMIT_LIMIT_MESSAGE)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit hit by %s on %s", get_remote_address(request), request.url.path)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"success": False, "message": exc.detail},
    )
