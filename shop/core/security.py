import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from shop.core.config import settings
from shop.core.exceptions import AuthenticationFailed


# Initialize logger for tracking token generation events
logger = logging.getLogger(__name__)


# ----- JWT --------

def create_access_token(user) -> str:
    """
    Generates a signed, time-bounded JWT Access Token.

    Payload:
    - sub: The User UUID (Standard subject claim)
    - name: Display name, so downstream services need no user lookup
    - email: The user's email
    - iat / exp: Issue and expiration timestamps (Default: 72 hours)
    """

    now = datetime.now(timezone.utc)
    expire = now + timedelta(hours=settings.access_token_expire_hours)

    # Ensure user.id is a string as UUID objects aren't JSON serializable by default
    payload = {
        "sub": str(user.id),
        "name": user.name,
        "email": user.email,
        "iat": now,
        "exp": expire,
    }

    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    logger.debug(f"JWT: Access token created for user {user.id}")
    return token


def decode_access_token(token: str) -> dict:
    """
    Verifies signature and expiry and returns the claims.

    Only the configured symmetric algorithm is accepted, so a token whose
    header names any other algorithm (including "none") is rejected.
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        raise AuthenticationFailed("Invalid or expired JWT")


# --- HASHING BCRYPT ---

MAX_BYTE_LENGTH = 72


def hash_password(password: str) -> str:
    """Hashes a plain-text password using native Bcrypt."""

    # bcrypt only looks at the first 72 bytes; refuse rather than truncate
    if len(password.encode("utf-8")) > MAX_BYTE_LENGTH:
        logger.warning("Password hashing failed: Input exceeds 72-byte limit.")
        raise ValueError("Password too long")

    # hashpw returns bytes, so we decode to utf-8 string for DB storage
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=settings.bcrypt_rounds),
    ).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain-text password against a stored hash in constant time."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        logger.error("Password verification failed: unusable password or hash")
        return False


# Compared against when the email is unknown so a failed login costs the
# same whether or not the account exists.
DUMMY_PASSWORD_HASH = bcrypt.hashpw(
    b"not-a-real-password", bcrypt.gensalt(rounds=settings.bcrypt_rounds)
).decode("utf-8")
