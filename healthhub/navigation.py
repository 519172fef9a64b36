"""Role-gated view routing.

Maps a signed-in identity onto one of five viewer states and decides which
portal pages that state may reach. The API dependencies use the same states
to guard endpoints.
"""

from dataclasses import dataclass
from enum import Enum

from healthhub.models.account import Account, ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT


class ViewerState(str, Enum):
    ANONYMOUS = "anonymous"
    PATIENT = "patient"
    DOCTOR_PENDING = "doctor_pending"
    DOCTOR_APPROVED = "doctor_approved"
    ADMIN = "admin"


LOGIN_PATH = "/login"
PENDING_PATH = "/registration-pending"

PUBLIC_ROUTES = frozenset({"/", "/login", "/register", "/registration-pending"})
SHARED_ROUTES = frozenset({"/dashboard", "/profile"})
PATIENT_ROUTES = frozenset({"/chat", "/appointment", "/xray"})
ADMIN_ROUTES = frozenset({"/admin"})
DOCTOR_ROUTES = frozenset({"/doctor", "/doctor/chat"})

ROUTES_BY_STATE = {
    ViewerState.ANONYMOUS: PUBLIC_ROUTES,
    ViewerState.DOCTOR_PENDING: PUBLIC_ROUTES,
    ViewerState.PATIENT: PUBLIC_ROUTES | SHARED_ROUTES | PATIENT_ROUTES,
    ViewerState.DOCTOR_APPROVED: PUBLIC_ROUTES | SHARED_ROUTES | DOCTOR_ROUTES,
    ViewerState.ADMIN: PUBLIC_ROUTES | SHARED_ROUTES | ADMIN_ROUTES,
}

HOME_BY_STATE = {
    ViewerState.ANONYMOUS: LOGIN_PATH,
    ViewerState.DOCTOR_PENDING: PENDING_PATH,
    ViewerState.PATIENT: "/dashboard",
    ViewerState.DOCTOR_APPROVED: "/doctor",
    ViewerState.ADMIN: "/admin",
}

KNOWN_ROUTES = PUBLIC_ROUTES | SHARED_ROUTES | PATIENT_ROUTES | ADMIN_ROUTES | DOCTOR_ROUTES


@dataclass(frozen=True)
class RouteDecision:
    path: str
    allowed: bool
    redirect_to: str | None = None
    reason: str | None = None


def viewer_state(account: Account | None) -> ViewerState:
    if account is None:
        return ViewerState.ANONYMOUS
    if account.role == ROLE_ADMIN:
        return ViewerState.ADMIN
    if account.role == ROLE_DOCTOR:
        if account.approved is True:
            return ViewerState.DOCTOR_APPROVED
        return ViewerState.DOCTOR_PENDING
    if account.role == ROLE_PATIENT:
        return ViewerState.PATIENT
    return ViewerState.ANONYMOUS


def normalize_path(path: str) -> str:
    normalized = '/' + path.strip().split('?', 1)[0].strip('/')
    return normalized.lower()


def resolve(path: str, state: ViewerState) -> RouteDecision:
    normalized = normalize_path(path)

    if normalized not in KNOWN_ROUTES:
        return RouteDecision(path=normalized, allowed=False, reason='not_found')

    if normalized in ROUTES_BY_STATE[state]:
        return RouteDecision(path=normalized, allowed=True)

    if state == ViewerState.ANONYMOUS:
        return RouteDecision(path=normalized, allowed=False, redirect_to=LOGIN_PATH, reason='login_required')

    if state == ViewerState.DOCTOR_PENDING:
        return RouteDecision(path=normalized, allowed=False, redirect_to=PENDING_PATH, reason='pending_approval')

    return RouteDecision(path=normalized, allowed=False, redirect_to=HOME_BY_STATE[state], reason='forbidden')
