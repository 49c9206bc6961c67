"""JWT token generation and validation for flowboard."""

import os
import jwt
from datetime import datetime, timedelta
from typing import Optional, Dict
from dotenv import load_dotenv

load_dotenv()

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))


def create_access_token(user_id: str, *, expires_in: Optional[timedelta] = None) -> str:
    """Create a bearer token for a signed-in user.

    Args:
        user_id: User ID stored in the `sub` claim
        expires_in: Lifetime override (defaults to JWT_EXPIRATION_HOURS)

    Returns:
        Encoded JWT token string
    """
    issued_at = datetime.utcnow()
    payload = {
        "sub": user_id,
        "exp": issued_at + (expires_in or timedelta(hours=JWT_EXPIRATION_HOURS)),
        "iat": issued_at,
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode a bearer token; None when it is expired, forged or malformed."""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_user_id_from_token(token: str) -> Optional[str]:
    payload = decode_access_token(token)
    if payload:
        return payload.get("sub")
    return None
