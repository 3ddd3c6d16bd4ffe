"""Password hashing and bearer token verification."""

from datetime import datetime, timedelta
from typing import Optional
import secrets
import string

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from clearcare.config import settings
from clearcare.core.logging import logger


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TEMPORARY_PASSWORD_LENGTH = 16
TEMPORARY_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """
    Sign a token for a user id.

    Tokens are normally issued by the identity service; this mirrors its
    claim layout (``sub``, ``iat``, ``exp``) for tooling and tests.
    """
    issued_at = datetime.utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {**claims, "sub": subject, "iat": issued_at, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Verified claims, or None when the signature or expiry check fails."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.debug("Rejected expired bearer token")
        return None
    except JWTError:
        return None


def token_subject(token: str) -> Optional[str]:
    """The user id a valid token was issued for."""
    payload = decode_token(token)
    if not payload:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None


def generate_temporary_password(length: int = TEMPORARY_PASSWORD_LENGTH) -> str:
    """Random password for administrator-created accounts; always mixed case with a digit."""
    while True:
        password = "".join(secrets.choice(TEMPORARY_PASSWORD_ALPHABET) for _ in range(length))
        if (
            any(c.islower() for c in password)
            and any(c.isupper() for c in password)
            and any(c.isdigit() for c in password)
        ):
            return password
