# interviewxpert/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from interviewxpert.api.generation import router as generation_router
from interviewxpert.api.sessions import router as sessions_router
from interviewxpert.core.config import settings
from interviewxpert.db.session import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "InterviewXpert Assessment API"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{SERVICE_NAME} v{VERSION} started")
    yield


app = FastAPI(
    title=SERVICE_NAME,
    version=VERSION,
    lifespan=lifespan,
)

# --------------------------------------------------
# CORS CONFIG
# --------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --------------------------------------------------
# ERROR ENVELOPE: {"error": ..., "details": ...}
# --------------------------------------------------
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        body = exc.detail
    else:
        body = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = next(
        (str(e["loc"][-1]) for e in errors if e.get("loc") and e["loc"][0] == "body" and len(e["loc"]) > 1),
        None,
    )
    message = f"Missing or invalid {field} field." if field else "Invalid request."
    return JSONResponse(
        status_code=400,
        content={
            "error": message,
            "details": "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in errors),
        },
    )


# --------------------------------------------------
# API ROUTES
# --------------------------------------------------

# Question generation proxy (path kept for the existing frontend)
app.include_router(generation_router, prefix="/api")
app.include_router(generation_router, prefix="/api/v1")

# Assessment sessions (acquire, submit, report)
app.include_router(sessions_router, prefix="/api/v1")


# --------------------------------------------------
# HEALTH CHECKS
# --------------------------------------------------
@app.get("/")
def root():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": VERSION,
    }


@app.get("/health")
def health_check():
    return {"status": "ok"}
