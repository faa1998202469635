"""Per-request dependencies: datastore session, asset storage and the auth gates."""
from typing import Optional

import jwt
from fastapi import Depends, Header

from .auth import decode_access_token
from .config import Settings, get_settings
from .db import SessionLocal
from .errors import Forbidden, InvalidToken, Unauthenticated
from .schemas import TokenUser
from .storage import AssetStorage


# Dependency to get DB session per request

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage(settings: Settings = Depends(get_settings)) -> AssetStorage:
    return AssetStorage(settings.upload_dir)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def _verify(token: str, settings: Settings) -> TokenUser:
    try:
        return decode_access_token(token, settings.jwt_secret)
    except jwt.PyJWTError as e:
        raise InvalidToken() from e


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> TokenUser:
    token = _bearer_token(authorization)
    if not token:
        raise Unauthenticated()
    return _verify(token, settings)


def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Optional[TokenUser]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    token = _bearer_token(authorization)
    if not token:
        return None
    return _verify(token, settings)


def require_admin(user: TokenUser = Depends(get_current_user)) -> TokenUser:
    if not user.is_admin:
        raise Forbidden()
    return user
