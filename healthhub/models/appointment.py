"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, text
from healthhub.database import Base

STATUS_UPCOMING = "Upcoming"
STATUS_COMPLETED = "Completed"
STATUS_CANCELLED = "Cancelled"

_UPCOMING_ONLY = text(f"status = '{STATUS_UPCOMING}'")


class Appointment(Base):
    """Represents a booked consultation between a patient and a doctor."""
    __tablename__ = "appointments"
    __table_args__ = (
        # one upcoming booking per doctor slot; cancelled and completed rows free it again
        Index(
            "uq_appointment_upcoming_slot",
            "doctor_id",
            "date",
            "time",
            unique=True,
            sqlite_where=_UPCOMING_ONLY,
            postgresql_where=_UPCOMING_ONLY,
        ),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    patient_name = Column(String)
    doctor_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    doctor_name = Column(String)
    date = Column(Date, nullable=False)
    time = Column(String, nullable=False)
    status = Column(String, default=STATUS_UPCOMING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
