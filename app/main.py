# app/main.py
"""
FastAPI application entry point.
Includes CORS, request timing, error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError
from app.routers import auth, entries, notifications, reference, users, health
from app.database import SessionLocal, create_tables
from app.config import settings
from app.services.errors import DuplicateRecordError, RecordNotFoundError
from app.services.user_service import ensure_admin
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Portaria Única API",
    description="Gate control: vehicle entries, release approvals, exits and receipts.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (gate terminals and the approvers' browsers) ───────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGIN_LIST,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database not connected"},
    )


@app.exception_handler(DuplicateRecordError)
async def duplicate_record_handler(request: Request, exc: DuplicateRecordError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": {"field": exc.field, "message": exc.message}},
    )


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(auth.router,          prefix="/api/v1", tags=["🔑 Auth"])
app.include_router(entries.router,       prefix="/api/v1", tags=["🚚 Entries"])
app.include_router(notifications.router, prefix="/api/v1", tags=["🔔 Release Requests"])
app.include_router(reference.router,     prefix="/api/v1", tags=["📇 Reference Data"])
app.include_router(users.router,         prefix="/api/v1", tags=["👤 Users"])
app.include_router(health.router,        prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Portaria backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Portaria backend shutting down...")
