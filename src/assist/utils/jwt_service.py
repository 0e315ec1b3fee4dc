"""Access tokens for signup and login.

Tokens are read back by the API Gateway authorizer, which trusts ``user_id``
and ``role`` and requires ``exp``.
"""

import os
from datetime import datetime, timedelta
from typing import Callable, Optional

from jose import jwt

from assist.models.users import User
from assist.utils.datetime_normaliser import utc_now

DEFAULT_TOKEN_TTL_MINUTES = 60 * 24 * 7


def token_settings():
    secret = os.environ.get("JWT_SECRET")
    if not secret:
        raise RuntimeError("JWT_SECRET environment variable is not set")
    algorithm = os.environ.get("JWT_ALGORITHM", "HS256")
    ttl = timedelta(
        minutes=int(os.environ.get("JWT_EXPIRE_MINUTES", DEFAULT_TOKEN_TTL_MINUTES))
    )
    return secret, algorithm, ttl


def issue_token(user: User, clock: Optional[Callable[[], datetime]] = None) -> str:
    secret, algorithm, ttl = token_settings()
    issued_at = (clock or utc_now)()
    claims = {
        "sub": user.user_id,
        "user_id": user.user_id,
        "email": user.email,
        "role": user.role.value,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return jwt.encode(claims, secret, algorithm=algorithm)
