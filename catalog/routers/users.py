from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..deps import get_current_user, get_db, require_admin

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=schemas.UserList)
async def list_users(db: Session = Depends(get_db), _admin: schemas.TokenUser = Depends(require_admin)):
    return {"success": True, "users": crud.list_users(db)}


@router.get("/{user_id}", response_model=schemas.UserEnvelope)
async def get_user(user_id: int, db: Session = Depends(get_db), _admin: schemas.TokenUser = Depends(require_admin)):
    return {"success": True, "user": crud.get_user(db, user_id)}


@router.post("", response_model=schemas.UserEnvelope, status_code=201)
async def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    return {"success": True, "user": crud.create_user(db, payload)}


@router.put("/{user_id}", response_model=schemas.UserEnvelope)
async def update_user(
    user_id: int,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    return {"success": True, "user": crud.update_user(db, user_id, payload)}


@router.delete("/{user_id}", response_model=schemas.Ack)
async def delete_user(user_id: int, db: Session = Depends(get_db), _admin: schemas.TokenUser = Depends(require_admin)):
    crud.delete_user(db, user_id)
    return {"success": True, "message": "User deleted successfully"}


@router.put("/{user_id}/change-password", response_model=schemas.Ack)
async def change_password(
    user_id: int,
    payload: schemas.PasswordChange,
    db: Session = Depends(get_db),
    acting: schemas.TokenUser = Depends(get_current_user),
):
    crud.change_password(db, user_id, acting, payload)
    return {"success": True, "message": "Password changed successfully"}
