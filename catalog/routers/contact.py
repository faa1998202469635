from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..deps import get_db, require_admin

router = APIRouter(prefix="/api/contact", tags=["contact"])

ACK_MESSAGE = "Your message has been sent successfully. We will get back to you soon."


@router.post("", response_model=schemas.Ack, status_code=201)
async def submit_message(payload: schemas.ContactCreate, db: Session = Depends(get_db)):
    crud.create_message(db, payload)
    # never echo the stored message back
    return {"success": True, "message": ACK_MESSAGE}


@router.get("/messages", response_model=schemas.MessageList)
async def list_messages(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=schemas.MAX_LIMIT),
    status: Optional[Literal["unread", "read"]] = Query(default=None),
    db: Session = Depends(get_db),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    result = crud.list_messages(db, page, limit, status)
    return {"success": True, "messages": result.items, "pagination": result.meta()}


@router.get("/messages/{message_id}", response_model=schemas.MessageEnvelope)
async def get_message(message_id: int, db: Session = Depends(get_db), _admin: schemas.TokenUser = Depends(require_admin)):
    return {"success": True, "message": crud.get_message(db, message_id, mark_read=True)}


@router.put("/messages/{message_id}", response_model=schemas.MessageEnvelope)
async def update_message(
    message_id: int,
    payload: schemas.MessageUpdate,
    db: Session = Depends(get_db),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    return {"success": True, "message": crud.update_message(db, message_id, payload)}


@router.delete("/messages/{message_id}", response_model=schemas.Ack)
async def delete_message(message_id: int, db: Session = Depends(get_db), _admin: schemas.TokenUser = Depends(require_admin)):
    crud.delete_message(db, message_id)
    return {"success": True, "message": "Message deleted successfully"}
