import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./healthhub.db")
SEED_DEMO_ACCOUNTS = _get_bool(os.getenv("SEED_DEMO_ACCOUNTS"), default=True)

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:8080"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

HEALTH_BOT_URL = os.getenv("HEALTH_BOT_URL", "")
HEALTH_BOT_TIMEOUT_SECONDS = float(os.getenv("HEALTH_BOT_TIMEOUT_SECONDS", "15"))

# random | filename
CLASSIFIER_MODE = os.getenv("CLASSIFIER_MODE", "random").strip().lower()


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if CLASSIFIER_MODE not in {"random", "filename"}:
        raise RuntimeError("CLASSIFIER_MODE must be 'random' or 'filename'.")
