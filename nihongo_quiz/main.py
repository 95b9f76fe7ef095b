"""FastAPI entrypoint for the Nihongo quiz service."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlmodel import Session, select
from starlette.middleware.sessions import SessionMiddleware

from nihongo_quiz.auth_utils import hash_password
from nihongo_quiz.config import get_settings
from nihongo_quiz.database import create_db_and_tables, engine
from nihongo_quiz.errors import QuizError
from nihongo_quiz.logging_config import configure_logging
from nihongo_quiz.models import User
from nihongo_quiz.routers import auth as auth_router_module
from nihongo_quiz.routers import curriculum as curriculum_router_module
from nihongo_quiz.routers import grading as grading_router_module
from nihongo_quiz.routers import quiz as quiz_router_module

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Nihongo Quiz Service")


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    """Render quiz lifecycle failures as JSON with their status code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 422 without echoing the submitted values."""
    errors = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"detail": errors})


# Session middleware for simple cookie-based authentication
app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY)

# Routers
app.include_router(auth_router_module.router, prefix="/auth", tags=["auth"])
app.include_router(quiz_router_module.router, prefix="/api", tags=["quiz"])
app.include_router(grading_router_module.router, prefix="/api", tags=["grading"])
app.include_router(curriculum_router_module.router, prefix="/api/admin", tags=["curriculum"])


@app.get("/health")
def health():
    return {"status": "ok"}


@app.on_event("startup")
def on_startup():
    """Initialize database schema and seed a default admin."""
    create_db_and_tables()
    with Session(engine) as session:
        existing_admin = session.exec(select(User).where(User.role == "admin")).first()
        if not existing_admin:
            admin_user = User(
                name="System Admin",
                email=settings.SEED_ADMIN_EMAIL.strip().lower(),
                password_hash=hash_password(settings.SEED_ADMIN_PASSWORD),
                role="admin",
            )
            session.add(admin_user)
            session.commit()
            logger.info("Seeded default admin user: %s", admin_user.email)
