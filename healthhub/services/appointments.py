"""Appointment booking and per-viewer appointment lists."""

import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthhub.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from healthhub.models.account import Account
from healthhub.models.appointment import Appointment, STATUS_CANCELLED, STATUS_COMPLETED, STATUS_UPCOMING
from healthhub.services import directory

logger = logging.getLogger(__name__)

TIME_SLOTS = (
    '8:00 AM',
    '9:00 AM',
    '9:30 AM',
    '10:00 AM',
    '10:30 AM',
    '11:00 AM',
    '12:00 PM',
    '1:30 PM',
    '2:00 PM',
    '2:30 PM',
    '3:00 PM',
    '4:00 PM',
    '4:30 PM',
)


def list_time_slots() -> list[str]:
    return list(TIME_SLOTS)


def normalize_time_label(value: str) -> str:
    compact = (value or '').strip().upper().replace(' ', '')
    if not compact:
        raise ValidationError('Please select a doctor, date, and time to book an appointment.')

    try:
        parsed = datetime.strptime(compact, '%I:%M%p')
    except ValueError as exc:
        raise ValidationError(f'Invalid appointment time: {value}') from exc

    suffix = 'AM' if parsed.hour < 12 else 'PM'
    return f'{parsed.hour % 12 or 12}:{parsed.minute:02d} {suffix}'


def find_upcoming_in_slot(db: Session, doctor_id: int, appointment_date: date, time_label: str) -> Appointment | None:
    return db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.date == appointment_date,
        Appointment.time == time_label,
        Appointment.status == STATUS_UPCOMING,
    ).first()


def book(
    db: Session,
    patient: Account,
    doctor_id: int | None,
    appointment_date: date | None,
    appointment_time: str | None,
    today: date | None = None,
) -> Appointment:
    if not doctor_id or appointment_date is None or not (appointment_time or '').strip():
        raise ValidationError('Please select a doctor, date, and time to book an appointment.')

    time_label = normalize_time_label(appointment_time)
    if time_label not in TIME_SLOTS:
        raise ValidationError(f'{time_label} is not an available appointment time.')

    today = today or date.today()
    if appointment_date < today:
        raise ValidationError('Appointments cannot be booked in the past.')

    doctor = directory.get_approved_doctor(db, doctor_id)

    if find_upcoming_in_slot(db, doctor.id, appointment_date, time_label) is not None:
        raise ConflictError('This time is already booked.')

    patient_id, doctor_id = patient.id, doctor.id
    appointment = Appointment(
        patient_id=patient_id,
        patient_name=patient.name,
        doctor_id=doctor_id,
        doctor_name=doctor.name,
        date=appointment_date,
        time=time_label,
        status=STATUS_UPCOMING,
    )
    db.add(appointment)
    try:
        db.commit()
    except IntegrityError as exc:
        # a concurrent booking took the slot between the check and the insert
        db.rollback()
        logger.info('Slot %s %s for doctor %s was taken concurrently', appointment_date.isoformat(), time_label, doctor_id)
        raise ConflictError('This time is already booked.') from exc
    db.refresh(appointment)

    logger.info(
        'Booked appointment %s: patient %s with doctor %s on %s at %s',
        appointment.id, patient_id, doctor_id, appointment_date.isoformat(), time_label,
    )
    return appointment


def list_for_doctor(db: Session, doctor_id: int) -> list[Appointment]:
    return db.query(Appointment).filter(Appointment.doctor_id == doctor_id).order_by(Appointment.id.asc()).all()


def list_for_patient(db: Session, patient_id: int) -> list[Appointment]:
    return db.query(Appointment).filter(Appointment.patient_id == patient_id).order_by(Appointment.id.asc()).all()


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise NotFoundError('Appointment not found.')
    return appointment


def _transition(db: Session, appointment: Appointment, status: str) -> Appointment:
    if appointment.status != STATUS_UPCOMING:
        raise ValidationError(f'Only upcoming appointments can be marked {status.lower()}.')

    appointment.status = status
    db.commit()
    db.refresh(appointment)
    logger.info('Appointment %s is now %s', appointment.id, status)
    return appointment


def cancel(db: Session, appointment_id: int, patient: Account) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    if appointment.patient_id != patient.id:
        raise PermissionDeniedError('Only the patient who booked this appointment can cancel it.')
    return _transition(db, appointment, STATUS_CANCELLED)


def complete(db: Session, appointment_id: int, doctor: Account) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    if appointment.doctor_id != doctor.id:
        raise PermissionDeniedError('Only the assigned doctor can complete this appointment.')
    return _transition(db, appointment, STATUS_COMPLETED)
