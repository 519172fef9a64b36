"""Doctor/patient message store.

Every (patient, doctor) pair owns one conversation row; messages from both
sides are appended to it, so a thread never has to be stitched together
from separate per-author collections.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthhub.core.errors import ValidationError
from healthhub.models.conversation import Conversation, Message, SENDER_DOCTOR, SENDER_PATIENT
from healthhub.services import directory

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


def display_timestamp(moment: datetime) -> str:
    return moment.strftime('%I:%M %p')


def find_conversation(db: Session, patient_id: int, doctor_id: int) -> Conversation | None:
    return db.query(Conversation).filter(
        Conversation.patient_id == patient_id,
        Conversation.doctor_id == doctor_id,
    ).first()


def get_or_create_conversation(db: Session, patient_id: int, doctor_id: int) -> Conversation:
    conversation = find_conversation(db, patient_id, doctor_id)
    if conversation is not None:
        return conversation

    conversation = Conversation(patient_id=patient_id, doctor_id=doctor_id)
    db.add(conversation)
    try:
        db.flush()
    except IntegrityError:
        # another writer created the pair first
        db.rollback()
        conversation = find_conversation(db, patient_id, doctor_id)
        if conversation is None:
            raise
    return conversation


def conversation_messages(db: Session, patient_id: int, doctor_id: int) -> list[Message]:
    conversation = find_conversation(db, patient_id, doctor_id)
    if conversation is None:
        return []
    return messages_for(db, conversation)


def messages_for(db: Session, conversation: Conversation) -> list[Message]:
    return db.query(Message).filter(
        Message.conversation_id == conversation.id,
    ).order_by(Message.created_at.asc(), Message.id.asc()).all()


def _clean_text(text: str) -> str:
    normalized = (text or '').strip()
    if not normalized:
        raise ValidationError('Message cannot be empty.')
    if len(normalized) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f'Messages must be {MAX_MESSAGE_LENGTH} characters or fewer.')
    return normalized


def _append(db: Session, conversation: Conversation, author_id: int, sender: str, text: str) -> Message:
    message = Message(
        conversation_id=conversation.id,
        author_id=author_id,
        sender=sender,
        content=text,
        created_at=datetime.utcnow(),
    )
    db.add(message)
    db.flush()

    if sender == SENDER_PATIENT:
        conversation.patient_last_read_id = message.id
    else:
        conversation.doctor_last_read_id = message.id

    db.commit()
    db.refresh(message)
    return message


def send_as_patient(db: Session, patient_id: int, doctor_id: int, text: str) -> Message:
    content = _clean_text(text)
    directory.get_patient(db, patient_id)
    directory.get_approved_doctor(db, doctor_id)

    conversation = get_or_create_conversation(db, patient_id, doctor_id)
    message = _append(db, conversation, patient_id, SENDER_PATIENT, content)
    logger.info('Patient %s sent message %s to doctor %s', patient_id, message.id, doctor_id)
    return message


def send_as_doctor(db: Session, doctor_id: int, patient_id: int, text: str) -> Message:
    content = _clean_text(text)
    directory.get_approved_doctor(db, doctor_id)
    directory.get_patient(db, patient_id)

    conversation = get_or_create_conversation(db, patient_id, doctor_id)
    message = _append(db, conversation, doctor_id, SENDER_DOCTOR, content)
    logger.info('Doctor %s sent message %s to patient %s', doctor_id, message.id, patient_id)
    return message
