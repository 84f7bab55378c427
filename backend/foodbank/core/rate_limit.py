"""Rate limiting for the mutating request routes.

Admins are throttled per account when their bearer token decodes, so a
shared office IP does not lump several admins into one bucket.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from foodbank.core.config import settings
from foodbank.core.security import decode_access_token


def rate_limit_key(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme == "Bearer" and token:
        subject = (decode_access_token(token) or {}).get("sub")
        if subject:
            return f"user:{subject}"
    return get_remote_address(request)


limiter = Limiter(key_func=rate_limit_key, enabled=settings.rate_limit_enabled)
