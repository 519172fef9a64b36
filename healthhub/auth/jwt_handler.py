"""Signed bearer tokens for portal accounts."""

from datetime import datetime, timedelta, timezone

import jwt

from healthhub.core import config
from healthhub.models.account import Account


class InvalidSubjectError(jwt.InvalidTokenError):
    """The token verifies but its subject is not an account id."""


def create_access_token(account: Account, expires_minutes: int | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    claims = {
        "sub": str(account.id),
        "role": account.role,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )


def account_id_from_token(token: str) -> int:
    subject = str(decode_access_token(token)["sub"])
    if not subject.isdigit():
        raise InvalidSubjectError(f"Token subject {subject!r} is not an account id")
    return int(subject)
