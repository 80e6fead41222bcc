from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import jwt

from ..config import Settings, get_settings


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes and newer releases reject longer input
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    if rounds is None:
        rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_access_token(data: dict, settings: Optional[Settings] = None,
                        expires_delta: Optional[timedelta] = None) -> str:
    settings = settings or get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = dict(data)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> dict:
    """Decode and verify a bearer token.

    Raises ``jose.ExpiredSignatureError`` for expired tokens and
    ``jose.JWTError`` for anything else that fails verification.
    """
    settings = settings or get_settings()
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
