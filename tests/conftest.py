import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('SEED_DEMO_ACCOUNTS', 'false')
os.environ.setdefault('HEALTH_BOT_URL', '')

from healthhub.auth.passwords import hash_password  # noqa: E402
from healthhub.database import Base  # noqa: E402
from healthhub.models import account, appointment, bot_exchange, conversation  # noqa: E402,F401
from healthhub.models.account import Account  # noqa: E402

TEST_PASSWORD = 'password123'


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_account(db):
    counter = {'value': 0}

    def factory(role: str, name: str, approved: bool | None = None, email: str | None = None, **fields) -> Account:
        counter['value'] += 1
        created = Account(
            email=email or f'{role}{counter["value"]}@example.com',
            name=name,
            hashed_password=hash_password(TEST_PASSWORD),
            role=role,
            approved=approved,
            **fields,
        )
        db.add(created)
        db.commit()
        db.refresh(created)
        return created

    return factory


@pytest.fixture
def patient(make_account):
    return make_account('patient', 'Jane')


@pytest.fixture
def doctor(make_account):
    return make_account('doctor', 'Dr. Smith', approved=True, specialization='General Medicine')


@pytest.fixture
def pending_doctor(make_account):
    return make_account('doctor', 'Dr. Johnson', approved=False, specialization='Cardiology')


@pytest.fixture
def admin(make_account):
    return make_account('admin', 'Admin User')


@pytest.fixture
def session_factory(tmp_path):
    """Sessions on separate connections to one file database."""
    engine = create_engine(f'sqlite:///{tmp_path / "healthhub.db"}')
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def second_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def shared_db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_shared_account(shared_db):
    counter = {'value': 0}

    def factory(role: str, name: str, approved: bool | None = None, **fields) -> Account:
        counter['value'] += 1
        created = Account(
            email=f'shared-{role}{counter["value"]}@example.com',
            name=name,
            hashed_password=hash_password(TEST_PASSWORD),
            role=role,
            approved=approved,
            **fields,
        )
        shared_db.add(created)
        shared_db.commit()
        shared_db.refresh(created)
        return created

    return factory
