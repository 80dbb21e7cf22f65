from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt

from storefront.config import settings


class TokenError(Exception):
    """Credential could not be decoded: bad signature, expired or malformed."""


def _encode(payload: Dict, ttl_seconds: Optional[int]) -> str:
    ttl = settings.ACCESS_TOKEN_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    now = datetime.now(timezone.utc)
    claims = dict(payload, iat=now, exp=now + timedelta(seconds=ttl))
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def issue_user_token(user_id: int, ttl_seconds: Optional[int] = None) -> str:
    """Self-service token: ``{id, type: "user"}``."""
    return _encode({"id": user_id, "type": "user"}, ttl_seconds)


def issue_admin_token(admin_id: int, email: str, ttl_seconds: Optional[int] = None) -> str:
    """Admin-issued token: ``{id, email, role: "admin"}`` where id is an admins.admin_id."""
    return _encode({"id": admin_id, "email": email, "role": "admin"}, ttl_seconds)


def decode_token(token: str) -> Dict:
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as e:
        raise TokenError(str(e)) from e
