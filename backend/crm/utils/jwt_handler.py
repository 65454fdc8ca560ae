# backend/crm/utils/jwt_handler.py
from datetime import datetime, timedelta, timezone
from jose import jwt
from crm import config


def create_access_token(data: dict) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and verify JWT token"""
    return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
