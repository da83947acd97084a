"""
Rate Limiting for the Disserto API
==================================
Implements rate limiting using slowapi. Storage defaults to in-process memory
(RATE_LIMIT_STORAGE_URI); point it at a shared backend when running several workers.

- Authenticated callers are keyed by user id, anonymous callers by IP.
- /auth/login, /auth/register and /auth/admin use AUTH_RATE_LIMIT (brute force protection).
- RATE_LIMIT_ENABLED=false turns every limit into a no-op (tests).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Rate limit key:
    1. Authenticated user ID (set on request.state by the auth dependency)
    2. IP address
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """JSON body in the same shape as the other error responses, plus Retry-After"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limited", "http_path": request.url.path},
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "code": "RATE_LIMITED",
            "message": "Too many requests. Please slow down.",
            "details": {"limit": str(exc.detail)},
        },
        headers={"Retry-After": "60"},
    )


def auth_rate_limit():
    """Rate limit for credential endpoints"""
    return limiter.limit(settings.AUTH_RATE_LIMIT, key_func=get_remote_address)
