import asyncio
import io
from datetime import date, timedelta

import pytest
from starlette.datastructures import Headers, UploadFile

from healthhub.core import config
from healthhub.core.errors import ConflictError, ValidationError
from healthhub.routes import admin_routes, appointment_routes, bot_routes, chat_routes, xray_routes
from healthhub.routes.appointment_routes import CreateAppointmentRequest
from healthhub.routes.bot_routes import AskRequest
from healthhub.routes.chat_routes import SendMessageRequest
from healthhub.services import appointments
from healthhub.services.classifier import FilenameScanClassifier


def _upload(filename: str, content_type: str, content: bytes = b'\x89PNG fake') -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename, headers=Headers({'content-type': content_type}))


def test_admin_lists_pending_and_approved_doctors(db, admin, doctor, pending_doctor) -> None:
    pending = admin_routes.list_pending_doctors(admin=admin, db=db)
    approved = admin_routes.list_approved_doctors(admin=admin, db=db)

    assert [account.id for account in pending] == [pending_doctor.id]
    assert [account.id for account in approved] == [doctor.id]


def test_admin_remove_doctor_hides_doctor_from_booking(db, admin, patient, doctor) -> None:
    admin_routes.remove_doctor(doctor.id, admin=admin, db=db)

    assert appointment_routes.list_bookable_doctors(patient=patient, db=db) == []


def test_admin_lists_accounts_by_role(db, admin, patient, doctor) -> None:
    accounts = admin_routes.list_accounts(role=' Patient ', admin=admin, db=db)

    assert [account.id for account in accounts] == [patient.id]


def test_bookable_doctors_offer_time_slots(db, patient, doctor, pending_doctor) -> None:
    options = appointment_routes.list_bookable_doctors(patient=patient, db=db)

    assert [option.name for option in options] == ['Dr. Smith']
    assert '10:00 AM' in options[0].available_times


def test_every_doctor_offers_the_fixed_slot_list(db, make_account, patient, doctor) -> None:
    make_account('doctor', 'Dr. Wilson', approved=True, specialization='Pediatrics')

    options = appointment_routes.list_bookable_doctors(patient=patient, db=db)

    assert len(options) == 2
    assert all(option.available_times == appointments.list_time_slots() for option in options)


def test_booking_appears_in_doctor_conversation_list(db, patient, doctor) -> None:
    appointment_date = date.today() + timedelta(days=3)
    booked = appointment_routes.book_appointment(
        CreateAppointmentRequest(doctor_id=doctor.id, appointment_date=appointment_date, appointment_time='10:00 AM'),
        patient=patient,
        db=db,
    )

    doctor_appointments = appointment_routes.list_my_appointments(viewer=doctor, db=db)
    conversations = chat_routes.list_conversations(viewer=doctor, db=db)

    assert [a.id for a in doctor_appointments] == [booked.id]
    assert len(conversations) == 1
    assert conversations[0].counterpart_name == 'Jane'
    assert conversations[0].last_message_text == f'Appointment on {appointment_date.isoformat()} at 10:00 AM'
    assert conversations[0].unread_count == 0
    assert conversations[0].related_appointments[0].status == 'Upcoming'


def test_booking_same_slot_twice_conflicts(db, make_account, patient, doctor) -> None:
    request = CreateAppointmentRequest(
        doctor_id=doctor.id,
        appointment_date=date.today() + timedelta(days=1),
        appointment_time='9:00 AM',
    )
    appointment_routes.book_appointment(request, patient=patient, db=db)

    with pytest.raises(ConflictError):
        appointment_routes.book_appointment(request, patient=make_account('patient', 'John'), db=db)


def test_booking_with_blank_time_is_rejected(db, patient, doctor) -> None:
    request = CreateAppointmentRequest(doctor_id=doctor.id, appointment_date=date.today(), appointment_time='  ')

    with pytest.raises(ValidationError):
        appointment_routes.book_appointment(request, patient=patient, db=db)


def test_patient_cancels_and_doctor_completes(db, patient, doctor) -> None:
    first = appointment_routes.book_appointment(
        CreateAppointmentRequest(doctor_id=doctor.id, appointment_date=date.today(), appointment_time='2:00 PM'),
        patient=patient,
        db=db,
    )
    second = appointment_routes.book_appointment(
        CreateAppointmentRequest(doctor_id=doctor.id, appointment_date=date.today(), appointment_time='3:00 PM'),
        patient=patient,
        db=db,
    )

    assert appointment_routes.cancel_appointment(first.id, patient=patient, db=db).status == 'Cancelled'
    assert appointment_routes.complete_appointment(second.id, doctor=doctor, db=db).status == 'Completed'
    assert [a.status for a in appointment_routes.list_my_appointments(viewer=patient, db=db)] == [
        'Cancelled',
        'Completed',
    ]


def test_chat_round_trip_between_patient_and_doctor(db, patient, doctor) -> None:
    chat_routes.send_message(doctor.id, SendMessageRequest(content='hello'), viewer=patient, db=db)
    reply = chat_routes.send_message(patient.id, SendMessageRequest(content='hi'), viewer=doctor, db=db)

    assert reply.sender == 'doctor'
    assert reply.counterpart_id == patient.id

    patient_thread = chat_routes.open_conversation(doctor.id, mark_read=True, viewer=patient, db=db)
    doctor_thread = chat_routes.open_conversation(patient.id, mark_read=True, viewer=doctor, db=db)

    assert [m.content for m in patient_thread.messages] == ['hello', 'hi']
    assert [m.content for m in doctor_thread.messages] == ['hello', 'hi']
    assert [s.unread_count for s in chat_routes.list_conversations(viewer=patient, db=db)] == [0]


def test_contacts_list_opposite_role(db, make_account, patient, doctor, pending_doctor) -> None:
    other_patient = make_account('patient', 'John')

    assert [c.id for c in chat_routes.list_contacts(viewer=patient, db=db)] == [doctor.id]
    assert [c.id for c in chat_routes.list_contacts(viewer=doctor, db=db)] == [patient.id, other_patient.id]


def test_bot_ask_falls_back_and_records_history(db, patient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'HEALTH_BOT_URL', '')

    answer = bot_routes.ask(AskRequest(question='What should I do about a headache?'), account=patient, db=db)
    history = bot_routes.history(account=patient, db=db)

    assert answer.offline is True
    assert answer.question == 'What should I do about a headache?'
    assert answer.answer.startswith('Headaches can be caused by stress')
    assert [exchange.id for exchange in history] == [answer.exchange_id]


def test_xray_analyze_uses_injected_classifier(patient) -> None:
    response = asyncio.run(
        xray_routes.analyze_image(
            scan_type=' Brain ',
            file=_upload('mri_tumor.png', 'image/png'),
            patient=patient,
            classifier=FilenameScanClassifier(),
        )
    )

    assert response.detected is True
    assert response.scan_type == 'brain'
    assert response.model_name == 'NeuroScan-ML23 (97.8% accuracy)'


def test_xray_analyze_rejects_non_image_upload(patient) -> None:
    with pytest.raises(ValidationError) as exception_info:
        asyncio.run(
            xray_routes.analyze_image(
                scan_type='skin',
                file=_upload('notes.pdf', 'application/pdf'),
                patient=patient,
                classifier=FilenameScanClassifier(),
            )
        )

    assert exception_info.value.message == 'Please upload an image file'


def test_xray_analyze_rejects_empty_upload(patient) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(
            xray_routes.analyze_image(
                scan_type='skin',
                file=_upload('empty.png', 'image/png', content=b''),
                patient=patient,
                classifier=FilenameScanClassifier(),
            )
        )
