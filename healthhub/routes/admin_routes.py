from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthhub.auth.dependencies import require_admin
from healthhub.database import get_db
from healthhub.models.account import Account
from healthhub.routes.auth_routes import AccountResponse
from healthhub.routes.common import database_unavailable, ensure_database_ready
from healthhub.services import directory

router = APIRouter(tags=['admin'])


@router.get('/accounts', response_model=list[AccountResponse])
def list_accounts(
    role: str | None = Query(default=None),
    admin: Account = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        normalized_role = role.strip().lower() if role else None
        return directory.list_accounts(db, role=normalized_role)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/doctors/pending', response_model=list[AccountResponse])
def list_pending_doctors(admin: Account = Depends(require_admin), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return directory.list_pending_doctors(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/doctors/approved', response_model=list[AccountResponse])
def list_approved_doctors(admin: Account = Depends(require_admin), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return directory.list_approved_doctors(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/doctors/{doctor_id}/approve', response_model=AccountResponse)
def approve_doctor(doctor_id: int, admin: Account = Depends(require_admin), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return directory.approve(db, doctor_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/doctors/{doctor_id}/remove', response_model=AccountResponse)
def remove_doctor(doctor_id: int, admin: Account = Depends(require_admin), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return directory.remove_doctor(db, doctor_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
