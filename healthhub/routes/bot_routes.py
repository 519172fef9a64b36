from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthhub.auth.dependencies import require_member
from healthhub.database import get_db
from healthhub.models.account import Account
from healthhub.routes.common import database_unavailable, ensure_database_ready
from healthhub.services import health_bot

router = APIRouter(tags=['health-bot'])


class AskRequest(BaseModel):
    question: str


class AskResponse(BaseModel):
    exchange_id: int | None = None
    question: str
    answer: str
    offline: bool

    class Config:
        from_attributes = True


class BotExchangeResponse(BaseModel):
    id: int
    question: str
    answer: str
    offline: bool
    created_at: datetime

    class Config:
        from_attributes = True


@router.post('/ask', response_model=AskResponse)
def ask(data: AskRequest, account: Account = Depends(require_member), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AskResponse.model_validate(health_bot.ask_and_record(db, account, data.question))
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/history', response_model=list[BotExchangeResponse])
def history(account: Account = Depends(require_member), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return health_bot.history(db, account)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
