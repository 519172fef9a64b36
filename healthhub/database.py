from threading import Lock

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import declarative_base, sessionmaker

from healthhub.core import config


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(config.DATABASE_URL, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked = False

REQUIRED_TABLES = ('accounts', 'appointments', 'conversations', 'messages', 'bot_exchanges')


def ensure_schema() -> None:
    global _schema_checked

    if _schema_checked:
        return

    with _schema_lock:
        if _schema_checked:
            return

        existing_tables = set(inspect(engine).get_table_names())
        missing_tables = [
            Base.metadata.tables[name]
            for name in REQUIRED_TABLES
            if name not in existing_tables and name in Base.metadata.tables
        ]
        if missing_tables:
            Base.metadata.create_all(bind=engine, tables=missing_tables)

        for name in REQUIRED_TABLES:
            if name in existing_tables and name in Base.metadata.tables:
                for index in Base.metadata.tables[name].indexes:
                    index.create(bind=engine, checkfirst=True)

        _schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
