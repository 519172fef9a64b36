"""Conversation and message model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from healthhub.database import Base

SENDER_PATIENT = "patient"
SENDER_DOCTOR = "doctor"


class Conversation(Base):
    """The single message thread shared by one patient and one doctor."""
    __tablename__ = "conversations"
    __table_args__ = (UniqueConstraint("patient_id", "doctor_id", name="uq_conversation_pair"),)

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    # id of the last message each side has seen
    patient_last_read_id = Column(Integer, default=0, nullable=False)
    doctor_last_read_id = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Message(Base):
    """Represents one message appended to a conversation."""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), index=True, nullable=False)
    author_id = Column(Integer, nullable=False)
    sender = Column(String, nullable=False)  # patient/doctor
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
