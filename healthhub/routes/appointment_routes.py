from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthhub.auth.dependencies import require_doctor, require_participant, require_patient
from healthhub.database import get_db
from healthhub.models.account import Account, ROLE_PATIENT
from healthhub.routes.common import database_unavailable, ensure_database_ready
from healthhub.services import appointments, directory

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    doctor_id: int | None = None
    appointment_date: date | None = None
    appointment_time: str | None = None

    @field_validator('appointment_time')
    @classmethod
    def validate_appointment_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class DoctorOptionResponse(BaseModel):
    id: int
    name: str
    specialization: str | None = None
    hospital: str | None = None
    available_times: list[str]


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    patient_name: str | None = None
    doctor_id: int
    doctor_name: str | None = None
    date: date
    time: str
    status: str

    class Config:
        from_attributes = True


@router.get('/time-slots', response_model=list[str])
def list_time_slots():
    return appointments.list_time_slots()


@router.get('/doctors', response_model=list[DoctorOptionResponse])
def list_bookable_doctors(patient: Account = Depends(require_patient), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        doctors = directory.list_approved_doctors(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [
        DoctorOptionResponse(
            id=doctor.id,
            name=doctor.name,
            specialization=doctor.specialization,
            hospital=doctor.hospital,
            available_times=appointments.list_time_slots(),
        )
        for doctor in doctors
    ]


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: CreateAppointmentRequest,
    patient: Account = Depends(require_patient),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return appointments.book(db, patient, data.doctor_id, data.appointment_date, data.appointment_time)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(viewer: Account = Depends(require_participant), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        if viewer.role == ROLE_PATIENT:
            return appointments.list_for_patient(db, viewer.id)
        return appointments.list_for_doctor(db, viewer.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    patient: Account = Depends(require_patient),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return appointments.cancel(db, appointment_id, patient)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/{appointment_id}/complete', response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: int,
    doctor: Account = Depends(require_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return appointments.complete(db, appointment_id, doctor)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
