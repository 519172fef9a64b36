"""User directory: registration, credentials and doctor approval."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthhub.auth.passwords import hash_password, verify_password
from healthhub.core.errors import AuthenticationError, NotFoundError, ValidationError
from healthhub.models.account import Account, ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT, ROLES

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
REGISTRABLE_ROLES = (ROLE_PATIENT, ROLE_DOCTOR)
PROFILE_FIELDS = ('name', 'specialization', 'hospital', 'experience_years', 'emergency_contact')

DEMO_ACCOUNTS = [
    {'email': 'admin@healthhub.com', 'password': 'admin123', 'name': 'Admin User', 'role': ROLE_ADMIN},
    {'email': 'user@example.com', 'password': 'password123', 'name': 'Test User', 'role': ROLE_PATIENT},
    {
        'email': 'doctor@example.com',
        'password': 'doctor123',
        'name': 'Dr. Smith',
        'role': ROLE_DOCTOR,
        'approved': True,
        'specialization': 'General Medicine',
    },
    {
        'email': 'doctor2@example.com',
        'password': 'doctor456',
        'name': 'Dr. Johnson',
        'role': ROLE_DOCTOR,
        'approved': False,
        'specialization': 'Cardiology',
    },
]


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def list_accounts(db: Session, role: str | None = None) -> list[Account]:
    query = db.query(Account)
    if role is not None:
        if role not in ROLES:
            raise ValidationError('Invalid role.')
        query = query.filter(Account.role == role)
    return query.order_by(Account.id.asc()).all()


def list_approved_doctors(db: Session) -> list[Account]:
    return db.query(Account).filter(
        Account.role == ROLE_DOCTOR,
        Account.approved.is_(True),
    ).order_by(Account.id.asc()).all()


def list_pending_doctors(db: Session) -> list[Account]:
    return db.query(Account).filter(
        Account.role == ROLE_DOCTOR,
        Account.approved.is_not(True),
    ).order_by(Account.id.asc()).all()


def get_account(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        raise NotFoundError(f'Account {account_id} not found.')
    return account


def find_by_email(db: Session, email: str) -> Account | None:
    return db.query(Account).filter(Account.email == normalize_email(email)).first()


def get_doctor(db: Session, doctor_id: int) -> Account:
    doctor = db.query(Account).filter(Account.id == doctor_id, Account.role == ROLE_DOCTOR).first()
    if doctor is None:
        raise NotFoundError(f'Doctor {doctor_id} not found.')
    return doctor


def get_approved_doctor(db: Session, doctor_id: int) -> Account:
    doctor = get_doctor(db, doctor_id)
    if doctor.approved is not True:
        raise NotFoundError(f'Doctor {doctor_id} not found.')
    return doctor


def get_patient(db: Session, patient_id: int) -> Account:
    patient = db.query(Account).filter(Account.id == patient_id, Account.role == ROLE_PATIENT).first()
    if patient is None:
        raise NotFoundError(f'Patient {patient_id} not found.')
    return patient


def approve(db: Session, doctor_id: int) -> Account:
    doctor = get_doctor(db, doctor_id)
    if doctor.approved is True:
        return doctor

    doctor.approved = True
    db.commit()
    db.refresh(doctor)
    logger.info('Approved doctor account %s (%s)', doctor.id, doctor.email)
    return doctor


def remove_doctor(db: Session, doctor_id: int) -> Account:
    doctor = get_doctor(db, doctor_id)
    if doctor.approved is False:
        return doctor

    doctor.approved = False
    db.commit()
    db.refresh(doctor)
    logger.info('Removed doctor account %s from the approved list', doctor.id)
    return doctor


def register_account(
    db: Session,
    *,
    email: str,
    password: str,
    confirm_password: str,
    name: str,
    role: str,
    specialization: str | None = None,
    hospital: str | None = None,
) -> Account:
    normalized_email = normalize_email(email)
    name = (name or '').strip()

    if not normalized_email or not name:
        raise ValidationError('Name and email are required.')
    if role not in REGISTRABLE_ROLES:
        raise ValidationError('Only patient and doctor accounts can be registered.')
    if password != confirm_password:
        raise ValidationError('Passwords do not match')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    if role == ROLE_DOCTOR and not (specialization or '').strip():
        raise ValidationError('Specialization is required for doctors.')
    if find_by_email(db, normalized_email) is not None:
        raise ValidationError('Email already in use')

    account = Account(
        email=normalized_email,
        name=name,
        hashed_password=hash_password(password),
        role=role,
        approved=False if role == ROLE_DOCTOR else None,
        specialization=(specialization or '').strip() or None,
        hospital=(hospital or '').strip() or None,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError('Email already in use') from exc
    db.refresh(account)

    logger.info('Registered %s account %s', role, account.id)
    return account


def authenticate(db: Session, email: str, password: str) -> Account:
    account = find_by_email(db, email)
    if account is None or not verify_password(password, account.hashed_password):
        raise AuthenticationError('Invalid email or password')

    if account.role == ROLE_DOCTOR and account.approved is not True:
        raise AuthenticationError('Your account is pending approval by an administrator')

    return account


def update_profile(db: Session, account: Account, changes: dict) -> Account:
    unknown = set(changes) - set(PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f'Unknown profile fields: {", ".join(sorted(unknown))}')

    if 'name' in changes:
        name = (changes['name'] or '').strip()
        if not name:
            raise ValidationError('Name cannot be blank.')
        changes = {**changes, 'name': name}

    if changes.get('experience_years') is not None and changes['experience_years'] < 0:
        raise ValidationError('Experience cannot be negative.')

    for field, value in changes.items():
        if isinstance(value, str) and field != 'name':
            value = value.strip() or None
        setattr(account, field, value)

    db.commit()
    db.refresh(account)
    return account


def seed_demo_accounts(db: Session) -> int:
    created = 0
    for entry in DEMO_ACCOUNTS:
        if find_by_email(db, entry['email']) is not None:
            continue
        db.add(
            Account(
                email=entry['email'],
                name=entry['name'],
                hashed_password=hash_password(entry['password']),
                role=entry['role'],
                approved=entry.get('approved'),
                specialization=entry.get('specialization'),
            )
        )
        created += 1

    if created:
        db.commit()
        logger.info('Seeded %s demo accounts', created)
    return created
