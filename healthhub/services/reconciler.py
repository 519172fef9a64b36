"""Per-counterpart conversation summaries for patients and doctors.

Both dashboards and both chat pages read their conversation lists from
``reconcile``. A counterpart shows up when it shares a conversation or an
appointment with the viewer. Unread counts come from the viewer's read
cursor on the conversation, so opening a thread brings them back to zero.
"""

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from healthhub.core.errors import NotFoundError, PermissionDeniedError
from healthhub.models.account import Account, ROLE_DOCTOR, ROLE_PATIENT
from healthhub.models.appointment import Appointment, STATUS_UPCOMING
from healthhub.models.conversation import Conversation, Message
from healthhub.services import appointments as appointment_store
from healthhub.services import directory
from healthhub.services import messages as message_store

UNKNOWN_LABELS = {
    ROLE_PATIENT: 'Unknown Patient',
    ROLE_DOCTOR: 'Unknown Doctor',
}


@dataclass
class MessageView:
    id: int
    content: str
    sender: str
    author_id: int
    counterpart_id: int
    timestamp: str
    created_at: datetime


@dataclass
class ConversationSummary:
    counterpart_id: int
    counterpart_name: str
    last_message_text: str | None
    last_message_timestamp: str | None
    last_message_at: datetime | None
    last_message_id: int | None
    unread_count: int
    related_appointments: list[Appointment] = field(default_factory=list)


@dataclass
class ThreadView:
    counterpart_id: int
    counterpart_name: str
    messages: list[MessageView]


class _Side:
    """Column names for one side of a conversation."""

    def __init__(self, viewer: Account):
        if viewer.role == ROLE_PATIENT:
            self.own_role, self.other_role = ROLE_PATIENT, ROLE_DOCTOR
        elif viewer.role == ROLE_DOCTOR:
            self.own_role, self.other_role = ROLE_DOCTOR, ROLE_PATIENT
        else:
            raise PermissionDeniedError('Only patients and doctors have conversations.')
        self.viewer = viewer

    def own_column(self):
        return Conversation.patient_id if self.own_role == ROLE_PATIENT else Conversation.doctor_id

    def counterpart_of_conversation(self, conversation: Conversation) -> int:
        return conversation.doctor_id if self.own_role == ROLE_PATIENT else conversation.patient_id

    def counterpart_of_appointment(self, appointment: Appointment) -> int:
        return appointment.doctor_id if self.own_role == ROLE_PATIENT else appointment.patient_id

    def snapshot_name(self, appointment: Appointment) -> str | None:
        return appointment.doctor_name if self.own_role == ROLE_PATIENT else appointment.patient_name

    def pair(self, counterpart_id: int) -> tuple[int, int]:
        if self.own_role == ROLE_PATIENT:
            return self.viewer.id, counterpart_id
        return counterpart_id, self.viewer.id

    def last_read_id(self, conversation: Conversation) -> int:
        if self.own_role == ROLE_PATIENT:
            return conversation.patient_last_read_id or 0
        return conversation.doctor_last_read_id or 0

    def mark_read(self, conversation: Conversation, message_id: int) -> None:
        if self.own_role == ROLE_PATIENT:
            conversation.patient_last_read_id = max(conversation.patient_last_read_id or 0, message_id)
        else:
            conversation.doctor_last_read_id = max(conversation.doctor_last_read_id or 0, message_id)

    def appointments(self, db: Session) -> list[Appointment]:
        if self.own_role == ROLE_PATIENT:
            return appointment_store.list_for_patient(db, self.viewer.id)
        return appointment_store.list_for_doctor(db, self.viewer.id)


def appointment_preview(appointment: Appointment) -> str:
    preview = f'Appointment on {appointment.date.isoformat()} at {appointment.time}'
    if appointment.status != STATUS_UPCOMING:
        preview = f'{preview} ({appointment.status})'
    return preview


def preview_appointment(related: list[Appointment]) -> Appointment | None:
    """Latest upcoming booking, else the latest booking of any status."""
    upcoming = [a for a in related if a.status == STATUS_UPCOMING]
    candidates = upcoming or related
    return max(candidates, key=lambda a: a.id) if candidates else None


def to_message_view(message: Message, counterpart_id: int) -> MessageView:
    return MessageView(
        id=message.id,
        content=message.content,
        sender=message.sender,
        author_id=message.author_id,
        counterpart_id=counterpart_id,
        timestamp=message_store.display_timestamp(message.created_at),
        created_at=message.created_at,
    )


def _names_by_id(db: Session, account_ids: set[int]) -> dict[int, str]:
    if not account_ids:
        return {}
    rows = db.query(Account.id, Account.name).filter(Account.id.in_(account_ids)).all()
    return {account_id: name for account_id, name in rows}


def reconcile(db: Session, viewer: Account) -> list[ConversationSummary]:
    side = _Side(viewer)

    conversations = db.query(Conversation).filter(side.own_column() == viewer.id).all()
    conversations_by_counterpart = {side.counterpart_of_conversation(c): c for c in conversations}

    appointments_by_counterpart: dict[int, list[Appointment]] = {}
    for appointment in side.appointments(db):
        appointments_by_counterpart.setdefault(side.counterpart_of_appointment(appointment), []).append(appointment)

    counterpart_ids = set(conversations_by_counterpart) | set(appointments_by_counterpart)
    names = _names_by_id(db, counterpart_ids)

    summaries: list[ConversationSummary] = []
    for counterpart_id in counterpart_ids:
        related = appointments_by_counterpart.get(counterpart_id, [])
        conversation = conversations_by_counterpart.get(counterpart_id)
        thread = message_store.messages_for(db, conversation) if conversation is not None else []

        name = names.get(counterpart_id)
        if not name:
            snapshots = [side.snapshot_name(a) for a in related if side.snapshot_name(a)]
            name = snapshots[-1] if snapshots else UNKNOWN_LABELS[side.other_role]

        if thread:
            last = thread[-1]
            last_read_id = side.last_read_id(conversation)
            summaries.append(
                ConversationSummary(
                    counterpart_id=counterpart_id,
                    counterpart_name=name,
                    last_message_text=last.content,
                    last_message_timestamp=message_store.display_timestamp(last.created_at),
                    last_message_at=last.created_at,
                    last_message_id=last.id,
                    unread_count=sum(
                        1 for message in thread
                        if message.sender == side.other_role and message.id > last_read_id
                    ),
                    related_appointments=related,
                )
            )
        else:
            latest_booking = preview_appointment(related)
            summaries.append(
                ConversationSummary(
                    counterpart_id=counterpart_id,
                    counterpart_name=name,
                    last_message_text=appointment_preview(latest_booking) if latest_booking else None,
                    last_message_timestamp=None,
                    last_message_at=None,
                    last_message_id=None,
                    unread_count=0,
                    related_appointments=related,
                )
            )

    with_messages = sorted(
        (s for s in summaries if s.last_message_at is not None),
        key=lambda s: (s.last_message_at, s.last_message_id),
        reverse=True,
    )
    appointment_only = sorted(
        (s for s in summaries if s.last_message_at is None),
        key=lambda s: max((a.id for a in s.related_appointments), default=0),
        reverse=True,
    )
    return with_messages + appointment_only


def open_thread(db: Session, viewer: Account, counterpart_id: int, mark_read: bool = True) -> ThreadView:
    side = _Side(viewer)
    patient_id, doctor_id = side.pair(counterpart_id)
    conversation = message_store.find_conversation(db, patient_id, doctor_id)

    counterpart = db.query(Account).filter(Account.id == counterpart_id).first()
    if counterpart is not None and counterpart.role != side.other_role:
        raise NotFoundError(f'{side.other_role.capitalize()} {counterpart_id} not found.')
    if counterpart is None and conversation is None:
        raise NotFoundError(f'{side.other_role.capitalize()} {counterpart_id} not found.')

    thread = message_store.messages_for(db, conversation) if conversation is not None else []
    if mark_read and thread:
        side.mark_read(conversation, thread[-1].id)
        db.commit()

    return ThreadView(
        counterpart_id=counterpart_id,
        counterpart_name=counterpart.name if counterpart is not None else UNKNOWN_LABELS[side.other_role],
        messages=[to_message_view(message, counterpart_id) for message in thread],
    )


def send(db: Session, viewer: Account, counterpart_id: int, text: str) -> MessageView:
    side = _Side(viewer)
    if side.own_role == ROLE_PATIENT:
        message = message_store.send_as_patient(db, viewer.id, counterpart_id, text)
    else:
        message = message_store.send_as_doctor(db, viewer.id, counterpart_id, text)
    return to_message_view(message, counterpart_id)


def counterpart_directory(db: Session, viewer: Account) -> list[Account]:
    """Accounts the viewer may start a new conversation with."""
    side = _Side(viewer)
    if side.own_role == ROLE_PATIENT:
        return directory.list_approved_doctors(db)
    return directory.list_accounts(db, role=ROLE_PATIENT)
