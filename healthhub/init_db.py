"""Create the database tables and seed the demo accounts.

Usage:
    python -m healthhub.init_db
"""
import sys

from sqlalchemy.exc import SQLAlchemyError

from healthhub.database import SessionLocal, ensure_schema
from healthhub.models import account, appointment, bot_exchange, conversation  # noqa: F401
from healthhub.services import directory


def main() -> None:
    try:
        ensure_schema()
        db = SessionLocal()
        try:
            created = directory.seed_demo_accounts(db)
        finally:
            db.close()
    except SQLAlchemyError as exc:
        print("Database initialization failed:", exc, file=sys.stderr)
        sys.exit(1)

    print(f"Schema ready; seeded {created} demo accounts.")


if __name__ == "__main__":
    main()
