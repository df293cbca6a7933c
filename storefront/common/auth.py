from datetime import timedelta
from functools import wraps
from typing import Optional

from jose import JWTError, jwt
from quart import current_app, g, request

from .config import Settings
from .db import utcnow
from .errors import UnauthorizedError


def create_access_token(subject: str, config: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = utcnow() + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(subject), "exp": expire}
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_user_id(authorization: Optional[str], config: Settings) -> str:
    if not authorization:
        raise UnauthorizedError("Missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError("Invalid authentication credentials")
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Could not validate credentials")
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Token has no subject")
    return str(user_id)


def require_auth(func):
    """Route decorator: resolves the bearer token into ``g.user_id`` or answers 401."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        config: Settings = current_app.extensions["settings"]
        g.user_id = decode_user_id(request.headers.get("Authorization"), config)
        return await func(*args, **kwargs)

    return wrapper
