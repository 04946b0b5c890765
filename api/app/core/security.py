import hmac
import secrets
from datetime import datetime, timezone, timedelta
from uuid import UUID

import bcrypt
import jwt

from app.core.config import settings

TOKEN_COOKIE_NAME = "ecommerce_session"
CSRF_HEADER_NAME = "X-CSRF-Token"

# bcrypt has a 72-byte limit; longer passwords are rejected to avoid silent truncation
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError("Password is too long (max 72 bytes).")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("ascii")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("ascii"))
    except (ValueError, TypeError):
        return False


def generate_csrf_token() -> str:
    return secrets.token_hex(32)


def verify_csrf_token(expected: str | None, supplied: str | None) -> bool:
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected, supplied)


def create_access_token(user_id: UUID, session_id: UUID, username: str) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(hours=settings.session_expire_hours)
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "username": username,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(
        payload,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.PyJWTError:
        return None
