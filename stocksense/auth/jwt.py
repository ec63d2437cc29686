from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from stocksense.config import get_settings


def create_access_token(user_id: int, expires_in: timedelta | None = None) -> str:
    """Signed bearer token whose ``sub`` claim is the user id."""
    settings = get_settings()
    expires_in = expires_in or timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    claims = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def user_id_from_token(token: str | None) -> int | None:
    """User id from a valid token, or None for a missing, bad or expired one."""
    payload = decode_access_token(token) if token else None
    if not payload:
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
