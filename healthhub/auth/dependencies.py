import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from healthhub.auth import jwt_handler
from healthhub.core.errors import PermissionDeniedError
from healthhub.database import get_db
from healthhub.models.account import Account
from healthhub.navigation import ViewerState, viewer_state

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _account_from_token(token: str, db: Session) -> Account:
    try:
        account_id = jwt_handler.account_id_from_token(token)
    except jwt_handler.InvalidSubjectError as exc:
        raise HTTPException(status_code=401, detail="Invalid token subject") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        raise HTTPException(status_code=401, detail="User not found")
    return account


def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Account:
    return _account_from_token(credentials.credentials, db)


def get_optional_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Account | None:
    if credentials is None:
        return None
    return _account_from_token(credentials.credentials, db)


def ensure_state(account: Account, *states: ViewerState) -> Account:
    state = viewer_state(account)
    if state not in states:
        if state == ViewerState.DOCTOR_PENDING:
            raise PermissionDeniedError("Your account is pending approval by an administrator.")
        raise PermissionDeniedError("You do not have access to this resource.")
    return account


def require_state(*states: ViewerState):
    def dependency(account: Account = Depends(get_current_account)) -> Account:
        return ensure_state(account, *states)

    return dependency


require_patient = require_state(ViewerState.PATIENT)
require_doctor = require_state(ViewerState.DOCTOR_APPROVED)
require_admin = require_state(ViewerState.ADMIN)
require_participant = require_state(ViewerState.PATIENT, ViewerState.DOCTOR_APPROVED)
require_member = require_state(ViewerState.PATIENT, ViewerState.DOCTOR_APPROVED, ViewerState.ADMIN)
