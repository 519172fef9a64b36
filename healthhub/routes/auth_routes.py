from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthhub.auth import jwt_handler
from healthhub.auth.dependencies import get_current_account
from healthhub.database import get_db
from healthhub.models.account import Account, ROLE_DOCTOR, ROLE_PATIENT
from healthhub.navigation import HOME_BY_STATE, PENDING_PATH, viewer_state
from healthhub.routes.common import database_unavailable, ensure_database_ready
from healthhub.services import directory

router = APIRouter(tags=['auth'])

ROLE_ALIASES = {'user': ROLE_PATIENT}


class RegisterRequest(BaseModel):
    email: str
    password: str
    confirm_password: str
    name: str
    role: str = ROLE_PATIENT
    specialization: str | None = None
    hospital: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized or '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        return ROLE_ALIASES.get(normalized, normalized)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    specialization: str | None = None
    hospital: str | None = None
    experience_years: int | None = None
    emergency_contact: str | None = None


class AccountResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    approved: bool | None = None
    specialization: str | None = None
    hospital: str | None = None
    experience_years: int | None = None
    emergency_contact: str | None = None

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    account: AccountResponse
    viewer_state: str
    redirect_to: str
    access_token: str | None = None
    token_type: str = 'bearer'


def build_session(account: Account, with_token: bool = True) -> SessionResponse:
    state = viewer_state(account)
    return SessionResponse(
        account=AccountResponse.model_validate(account),
        viewer_state=state.value,
        redirect_to=HOME_BY_STATE[state],
        access_token=jwt_handler.create_access_token(account) if with_token else None,
    )


@router.post('/register', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        account = directory.register_account(
            db,
            email=data.email,
            password=data.password,
            confirm_password=data.confirm_password,
            name=data.name,
            role=data.role,
            specialization=data.specialization,
            hospital=data.hospital,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    # doctors wait for an administrator before they can sign in
    if account.role == ROLE_DOCTOR:
        session = build_session(account, with_token=False)
        session.redirect_to = PENDING_PATH
        return session

    session = build_session(account)
    session.redirect_to = '/'
    return session


@router.post('/login', response_model=SessionResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        account = directory.authenticate(db, data.email, data.password)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return build_session(account)


@router.get('/me', response_model=SessionResponse)
def me(current_account: Account = Depends(get_current_account)):
    return build_session(current_account, with_token=False)


@router.patch('/profile', response_model=AccountResponse)
def update_profile(
    data: ProfileUpdateRequest,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='No profile changes supplied.')

    try:
        return directory.update_profile(db, current_account, changes)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
