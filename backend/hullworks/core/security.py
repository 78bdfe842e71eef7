"""HULLWORKS MES — Password hashing (bcrypt) and JWT tokens."""
from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from hullworks.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str | Any,
    role: str,
    department_id: str | None = None,
    email: str | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + settings.access_token_ttl
    payload = {
        "sub": str(subject),
        "role": role,
        "department_id": str(department_id) if department_id else None,
        "exp": expire,
        "iat": now,
        "type": "access",
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
