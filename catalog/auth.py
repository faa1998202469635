import time
from typing import Optional

import jwt
from passlib.context import CryptContext

from .schemas import TokenUser

# Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
EXP_SECONDS = 60 * 60 * 24  # 1 day


def token_claims(user) -> TokenUser:
    return TokenUser(id=user.id, username=user.username, email=user.email, is_admin=bool(user.is_admin))


def create_access_token(claims: TokenUser, secret: str, expires_delta: Optional[int] = None) -> str:
    now = int(time.time())
    exp = now + (expires_delta or EXP_SECONDS)
    payload = {"sub": str(claims.id), **claims.model_dump(), "iat": now, "exp": exp}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> TokenUser:
    """Verify signature and expiry and return the identity claims.

    Raises jwt.PyJWTError for a bad, expired or incomplete token.
    """
    payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["exp", "sub"]})
    try:
        return TokenUser(
            id=payload["id"],
            username=payload["username"],
            email=payload["email"],
            is_admin=payload.get("is_admin", False),
        )
    except (KeyError, ValueError) as e:
        raise jwt.InvalidTokenError("token is missing identity claims") from e


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        # keep timing roughly equal to a real verification
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain, hashed)
