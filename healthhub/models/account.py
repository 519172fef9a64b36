"""Account model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from healthhub.database import Base

ROLE_PATIENT = "patient"
ROLE_DOCTOR = "doctor"
ROLE_ADMIN = "admin"
ROLES = (ROLE_PATIENT, ROLE_DOCTOR, ROLE_ADMIN)


class Account(Base):
    """Represents a registered portal account."""
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False)  # patient/doctor/admin
    approved = Column(Boolean, nullable=True)  # doctors only
    specialization = Column(String)
    hospital = Column(String)
    experience_years = Column(Integer)
    emergency_contact = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_doctor(self) -> bool:
        return self.role == ROLE_DOCTOR

    @property
    def is_approved_doctor(self) -> bool:
        return self.role == ROLE_DOCTOR and self.approved is True
