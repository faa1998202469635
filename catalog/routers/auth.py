from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..auth import create_access_token, token_claims
from ..config import Settings, get_settings
from ..deps import get_current_user, get_db, get_optional_user
from ..errors import Forbidden

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user, settings: Settings) -> dict:
    claims = token_claims(user)
    token = create_access_token(claims, settings.jwt_secret, settings.jwt_expires_in)
    return {"success": True, "token": token, "user": claims}


@router.post("/login", response_model=schemas.AuthResponse)
async def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = crud.authenticate(db, payload.username, payload.password)
    return _auth_response(user, settings)


@router.post("/register", response_model=schemas.AuthResponse)
async def register(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    acting: Optional[schemas.TokenUser] = Depends(get_optional_user),
):
    # anyone may sign up, but only an admin can mint another admin
    if payload.is_admin and not (acting and acting.is_admin):
        raise Forbidden()
    user = crud.create_user(db, payload)
    return _auth_response(user, settings)


@router.get("/me", response_model=schemas.UserEnvelope)
async def me(user: schemas.TokenUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "user": crud.get_user(db, user.id)}
