import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from healthhub.core import config
from healthhub.core.errors import HealthHubError
from healthhub.database import SessionLocal, ensure_schema
from healthhub.models import account, appointment, bot_exchange, conversation  # noqa: F401
from healthhub.routes import (
    admin_routes,
    appointment_routes,
    auth_routes,
    bot_routes,
    chat_routes,
    navigation_routes,
    xray_routes,
)
from healthhub.services import directory

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='HealthHub API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(HealthHubError)
async def healthhub_error_handler(request: Request, exc: HealthHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message})


@app.on_event('startup')
def initialize_database() -> None:
    try:
        ensure_schema()
        if config.SEED_DEMO_ACCOUNTS:
            db = SessionLocal()
            try:
                directory.seed_demo_accounts(db)
            finally:
                db.close()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'HealthHub API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(navigation_routes.router, prefix='/navigation')
app.include_router(admin_routes.router, prefix='/admin')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(chat_routes.router, prefix='/chat')
app.include_router(bot_routes.router, prefix='/bot')
app.include_router(xray_routes.router, prefix='/xray')
