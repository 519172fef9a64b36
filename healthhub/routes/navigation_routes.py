from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from healthhub.auth.dependencies import get_optional_account
from healthhub.models.account import Account
from healthhub import navigation

router = APIRouter(tags=['navigation'])


class RouteDecisionResponse(BaseModel):
    path: str
    viewer_state: str
    allowed: bool
    redirect_to: str | None = None
    reason: str | None = None


@router.get('/resolve', response_model=RouteDecisionResponse)
def resolve_route(
    path: str = Query(...),
    account: Account | None = Depends(get_optional_account),
):
    state = navigation.viewer_state(account)
    decision = navigation.resolve(path, state)
    return RouteDecisionResponse(
        path=decision.path,
        viewer_state=state.value,
        allowed=decision.allowed,
        redirect_to=decision.redirect_to,
        reason=decision.reason,
    )
