from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthhub.auth.dependencies import require_participant
from healthhub.database import get_db
from healthhub.models.account import Account
from healthhub.routes.appointment_routes import AppointmentResponse
from healthhub.routes.common import database_unavailable, ensure_database_ready
from healthhub.services import reconciler

router = APIRouter(tags=['chat'])


class SendMessageRequest(BaseModel):
    content: str


class MessageResponse(BaseModel):
    id: int
    content: str
    sender: str
    author_id: int
    counterpart_id: int
    timestamp: str
    created_at: datetime

    class Config:
        from_attributes = True


class ConversationSummaryResponse(BaseModel):
    counterpart_id: int
    counterpart_name: str
    last_message_text: str | None = None
    last_message_timestamp: str | None = None
    unread_count: int
    related_appointments: list[AppointmentResponse]

    class Config:
        from_attributes = True


class ThreadResponse(BaseModel):
    counterpart_id: int
    counterpart_name: str
    messages: list[MessageResponse]

    class Config:
        from_attributes = True


class ContactResponse(BaseModel):
    id: int
    name: str
    role: str
    specialization: str | None = None

    class Config:
        from_attributes = True


@router.get('/contacts', response_model=list[ContactResponse])
def list_contacts(viewer: Account = Depends(require_participant), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return reconciler.counterpart_directory(db, viewer)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/conversations', response_model=list[ConversationSummaryResponse])
def list_conversations(viewer: Account = Depends(require_participant), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return [
            ConversationSummaryResponse.model_validate(summary)
            for summary in reconciler.reconcile(db, viewer)
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/conversations/{counterpart_id}', response_model=ThreadResponse)
def open_conversation(
    counterpart_id: int,
    mark_read: bool = Query(default=True),
    viewer: Account = Depends(require_participant),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return ThreadResponse.model_validate(reconciler.open_thread(db, viewer, counterpart_id, mark_read=mark_read))
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post(
    '/conversations/{counterpart_id}/messages',
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    counterpart_id: int,
    data: SendMessageRequest,
    viewer: Account = Depends(require_participant),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return MessageResponse.model_validate(reconciler.send(db, viewer, counterpart_id, data.content))
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
