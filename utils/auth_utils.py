import jwt
import logging
from datetime import datetime, timedelta, timezone
from fastapi import Header, HTTPException

from config import settings

JWT_ALG = "HS256"


def create_token(sub: str, expires_delta: timedelta = timedelta(days=7)) -> str:
    to_encode = {
        "sub": sub,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[JWT_ALG])


def get_current_user_id(authorization: str | None = Header(default=None)) -> str:
    """Resolve the opaque user id from an `Authorization: Bearer` header."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        data = decode_token(token)
    except jwt.PyJWTError as e:
        logging.error(f"Token decode failed: {e}")
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")
    user_id = data.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return str(user_id)
