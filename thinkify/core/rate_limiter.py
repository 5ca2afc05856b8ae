"""
Request throttling with slowapi.

Counters live in process memory and are keyed by the authenticated user when
the role dependency has attached one, otherwise by client address. Login and
registration carry their own tighter limits.
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from thinkify.core.config import settings
from thinkify.core.logging_config import logger
from thinkify.core.responses import error_body

DEFAULT_RETRY_AFTER = "60"


def rate_limit_key(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    detail = str(exc.detail or "")
    logger.warning(
        f"Rate limit hit by {rate_limit_key(request)} on {request.url.path}: {detail}",
        extra={"event_type": "rate_limited"},
    )
    retry_after = detail.rsplit(" ", 1)[-1] if detail else ""
    return JSONResponse(
        status_code=429,
        content=error_body("Too many requests. Please slow down.", detail),
        headers={"Retry-After": retry_after if retry_after.isdigit() else DEFAULT_RETRY_AFTER},
    )


def auth_rate_limit():
    return limiter.limit(settings.LOGIN_RATE_LIMIT)


def registration_rate_limit():
    return limiter.limit(settings.REGISTER_RATE_LIMIT)
