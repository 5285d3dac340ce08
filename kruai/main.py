"""
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kruai.api.quiz_history import router as quiz_history_router
from kruai.api.quizzes import router as quizzes_router
from kruai.api.study import router as study_router
from kruai.api.summaries import router as summaries_router
from kruai.api.users import router as users_router
from kruai.core.config import settings
from kruai.core.database import get_db, init_db, ping
from kruai.core.errors import KruAIError, PersistenceError

# Configure logging
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s...", settings.APP_NAME, settings.APP_VERSION)
    init_db()
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url=None if settings.is_production() else "/docs",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = settings.API_PREFIX
app.include_router(users_router, prefix=f"{api}/users", tags=["users"])
app.include_router(summaries_router, prefix=f"{api}/summaries", tags=["summaries"])
app.include_router(quiz_history_router, prefix=f"{api}/quiz-history", tags=["quiz-history"])
app.include_router(study_router, prefix=f"{api}/study", tags=["study"])
app.include_router(quizzes_router, prefix=f"{api}/quizzes", tags=["quizzes"])

if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.exception_handler(KruAIError)
async def kruai_error_handler(request: Request, exc: KruAIError):
    if isinstance(exc, PersistenceError):
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
        content = {"error": "Server error", "details": exc.message, "type": exc.kind}
    else:
        content = {"error": exc.message, "type": exc.kind}
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get(f"{api}/db-test")
def db_test(db: Session = Depends(get_db)):
    try:
        now = ping(db)
    except SQLAlchemyError as e:
        logger.error("Database check failed: %s", e)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {"success": True, "time": str(now)}
