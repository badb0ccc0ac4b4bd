import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from feedbacts.api import (
    routes_auth,
    routes_courses,
    routes_form_categories,
    routes_forms,
    routes_instructor,
    routes_programs,
    routes_recipients,
    routes_settings,
    routes_students,
    routes_subject_evaluation,
    routes_users,
)
from feedbacts.core.config import settings
from feedbacts.core.logging import setup_logging
from feedbacts.core.rate_limit import limiter, rate_limit_exceeded_handler
from feedbacts.db import base, database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    base.Base.metadata.create_all(bind=database.engine)
    logger.info("%s API started (%s)", settings.PROJECT_NAME, settings.ENV)
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list,
    allow_credentials="*" not in settings.cors_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error envelopes: every failure is {"success": false, "message": ...} ---

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


@app.get("/")
def read_root():
    return {"success": True, "message": f"Welcome to the {settings.PROJECT_NAME} API"}


@app.get("/health")
def health():
    return {"success": True, "status": "ok"}


app.include_router(routes_auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(routes_forms.router, prefix="/api/forms", tags=["Forms"])
app.include_router(routes_form_categories.router, prefix="/api/form-categories", tags=["Form Categories"])
app.include_router(routes_users.router, prefix="/api/users", tags=["Users"])
app.include_router(routes_courses.router, prefix="/api/courses", tags=["Courses"])
app.include_router(routes_programs.router, prefix="/api/programs", tags=["Programs"])
app.include_router(routes_students.router, prefix="/api/students", tags=["Student Promotion"])
app.include_router(routes_recipients.router, prefix="/api/recipients", tags=["Recipients"])
app.include_router(routes_instructor.router, prefix="/api/instructor", tags=["Instructor"])
app.include_router(routes_settings.router, prefix="/api/settings", tags=["Settings"])
app.include_router(routes_subject_evaluation.router, prefix="/api/subject-evaluation", tags=["Subject Evaluation"])
