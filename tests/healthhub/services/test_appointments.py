from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from healthhub.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from healthhub.models.account import Account
from healthhub.models.appointment import Appointment
from healthhub.services import appointments

TODAY = date(2025, 4, 20)


def test_book_creates_upcoming_appointment_with_name_snapshots(db, patient, doctor) -> None:
    booked = appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)

    assert booked.status == 'Upcoming'
    assert booked.patient_name == 'Jane'
    assert booked.doctor_name == 'Dr. Smith'
    assert booked.date == date(2025, 5, 1)
    assert booked.time == '10:00 AM'


@pytest.mark.parametrize(
    ('raw_time', 'expected'),
    [('10:00 am', '10:00 AM'), ('09:30AM', '9:30 AM'), (' 2:00 PM ', '2:00 PM')],
)
def test_book_normalizes_time_labels(db, patient, doctor, raw_time: str, expected: str) -> None:
    booked = appointments.book(db, patient, doctor.id, date(2025, 5, 1), raw_time, today=TODAY)

    assert booked.time == expected


@pytest.mark.parametrize(
    ('doctor_id', 'appointment_date', 'appointment_time'),
    [(None, date(2025, 5, 1), '10:00 AM'), (1, None, '10:00 AM'), (1, date(2025, 5, 1), '  ')],
)
def test_book_rejects_missing_fields(db, patient, doctor, doctor_id, appointment_date, appointment_time) -> None:
    with pytest.raises(ValidationError) as exception_info:
        appointments.book(db, patient, doctor_id, appointment_date, appointment_time, today=TODAY)

    assert exception_info.value.message == 'Please select a doctor, date, and time to book an appointment.'


def test_book_rejects_past_dates(db, patient, doctor) -> None:
    with pytest.raises(ValidationError) as exception_info:
        appointments.book(db, patient, doctor.id, date(2025, 4, 19), '10:00 AM', today=TODAY)

    assert exception_info.value.message == 'Appointments cannot be booked in the past.'


def test_book_rejects_times_outside_offered_slots(db, patient, doctor) -> None:
    with pytest.raises(ValidationError):
        appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:15 AM', today=TODAY)


def test_book_rejects_unparseable_time(db, patient, doctor) -> None:
    with pytest.raises(ValidationError):
        appointments.book(db, patient, doctor.id, date(2025, 5, 1), 'noonish', today=TODAY)


def test_book_rejects_pending_doctor(db, patient, pending_doctor) -> None:
    with pytest.raises(NotFoundError):
        appointments.book(db, patient, pending_doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)


def test_book_rejects_double_booking_same_doctor_slot(db, make_account, patient, doctor) -> None:
    other_patient = make_account('patient', 'John')
    appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)

    with pytest.raises(ConflictError):
        appointments.book(db, other_patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)


def test_cancelled_slot_can_be_booked_again(db, patient, doctor) -> None:
    first = appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)
    appointments.cancel(db, first.id, patient)

    second = appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)

    assert second.id != first.id
    assert second.status == 'Upcoming'


def test_list_filters_by_viewer_in_insertion_order(db, make_account, patient, doctor) -> None:
    other_doctor = make_account('doctor', 'Dr. Wilson', approved=True, specialization='Pediatrics')
    first = appointments.book(db, patient, doctor.id, date(2025, 5, 2), '9:00 AM', today=TODAY)
    second = appointments.book(db, patient, other_doctor.id, date(2025, 5, 1), '9:00 AM', today=TODAY)
    third = appointments.book(db, patient, doctor.id, date(2025, 5, 1), '11:00 AM', today=TODAY)

    assert [a.id for a in appointments.list_for_patient(db, patient.id)] == [first.id, second.id, third.id]
    assert [a.id for a in appointments.list_for_doctor(db, doctor.id)] == [first.id, third.id]
    assert [a.id for a in appointments.list_for_doctor(db, other_doctor.id)] == [second.id]


def test_cancel_rejects_other_patient(db, make_account, patient, doctor) -> None:
    booked = appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)
    other_patient = make_account('patient', 'John')

    with pytest.raises(PermissionDeniedError):
        appointments.cancel(db, booked.id, other_patient)


def test_cancel_unknown_appointment_raises_not_found(db, patient) -> None:
    with pytest.raises(NotFoundError):
        appointments.cancel(db, 999, patient)


def test_complete_marks_appointment_completed_once(db, patient, doctor) -> None:
    booked = appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)

    completed = appointments.complete(db, booked.id, doctor)
    assert completed.status == 'Completed'

    with pytest.raises(ValidationError):
        appointments.complete(db, booked.id, doctor)


def test_complete_rejects_other_doctor(db, make_account, patient, doctor) -> None:
    booked = appointments.book(db, patient, doctor.id, date(2025, 5, 1), '10:00 AM', today=TODAY)
    other_doctor = make_account('doctor', 'Dr. Wilson', approved=True, specialization='Pediatrics')

    with pytest.raises(PermissionDeniedError):
        appointments.complete(db, booked.id, other_doctor)


def test_store_allows_one_upcoming_booking_per_doctor_slot(db, patient, doctor) -> None:
    def slot(status: str) -> Appointment:
        return Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            date=date(2025, 5, 1),
            time='10:00 AM',
            status=status,
        )

    db.add_all([slot('Cancelled'), slot('Completed'), slot('Upcoming')])
    db.commit()

    db.add(slot('Upcoming'))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_concurrent_booking_of_same_slot_conflicts(
    shared_db, second_session, make_shared_account, monkeypatch: pytest.MonkeyPatch
) -> None:
    patient = make_shared_account('patient', 'Jane')
    other_patient_id = make_shared_account('patient', 'John').id
    doctor_id = make_shared_account('doctor', 'Dr. Smith', approved=True, specialization='General Medicine').id
    slot_lookup = appointments.find_upcoming_in_slot

    def slot_taken_after_lookup(db, lookup_doctor_id, appointment_date, time_label):
        found = slot_lookup(db, lookup_doctor_id, appointment_date, time_label)
        monkeypatch.setattr(appointments, 'find_upcoming_in_slot', slot_lookup)
        appointments.book(
            second_session,
            second_session.get(Account, other_patient_id),
            lookup_doctor_id,
            appointment_date,
            time_label,
            today=TODAY,
        )
        return found

    monkeypatch.setattr(appointments, 'find_upcoming_in_slot', slot_taken_after_lookup)

    with pytest.raises(ConflictError):
        appointments.book(shared_db, patient, doctor_id, date(2030, 1, 1), '10:00 AM', today=TODAY)

    upcoming = second_session.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.date == date(2030, 1, 1),
        Appointment.time == '10:00 AM',
        Appointment.status == 'Upcoming',
    ).all()
    assert [a.patient_id for a in upcoming] == [other_patient_id]
