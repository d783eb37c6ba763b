import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from peopleflow.core.config import settings

logger = logging.getLogger(__name__)


def session_or_address(request: Request) -> str:
    """Bucket authenticated callers by session token, anonymous ones by client address."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
        token = credentials.strip() if scheme.lower() == "bearer" else None
    return f"session:{token}" if token else get_remote_address(request)


limiter = Limiter(key_func=session_or_address)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit hit on %s %s (%s)", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": "Demasiadas solicitudes. Intenta de nuevo más tarde.",
            "limit": str(exc.detail),
        },
    )
