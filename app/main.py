from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import sys
from pathlib import Path
import logging
from datetime import datetime
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load .env variables
load_dotenv()

# Configure base logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("app")

# Add the parent directory to sys.path
sys.path.append(str(Path(__file__).parent.parent))

from app import models  # noqa: F401  registra los modelos en Base
from app.routers import (
    auth,
    arenas,
    availability,
    courts,
    health,
    matches,
    reservations,
)
from app.database import engine, Base, SessionLocal
from app.exceptions import AppError, AuthenticationError
from app.init_db import create_initial_admin
from app.services.email import email_service, error_emails_enabled
import uvicorn


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)

    logger.info("Initializing database with initial admin...")
    db = SessionLocal()
    try:
        create_initial_admin(db)
    finally:
        db.close()

    _configure_email_error_reporting()
    yield


app = FastAPI(
    title="Borapo API",
    description="API for arenas, court reservations and pickup matches",
    version="1.0.0",
    lifespan=lifespan,
)


# Configure email error reporting
def _configure_email_error_reporting() -> None:
    if not error_emails_enabled():
        logger.info(
            "Email error reporting disabled (ENABLE_ERROR_EMAILS not set or false)"
        )
        return

    if not email_service.is_configured():
        logger.warning("Email service not configured: missing SMTP settings")
        return

    logger.info("Email error reporting configured successfully")


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix="/auth", tags=["authentication"])
app.include_router(arenas.router, prefix="/arenas", tags=["arenas"])
app.include_router(courts.router, prefix="/courts", tags=["courts"])
app.include_router(availability.router, prefix="/availability", tags=["availability"])
app.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
app.include_router(matches.router, prefix="/matches", tags=["matches"])


@app.get("/")
def read_root():
    return {"message": "Welcome to Borapo API"}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        # ("body", "startAt") -> "startAt"
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(
            {"field": ".".join(location) or None, "message": error.get("msg", "Invalid value")}
        )
    return JSONResponse(status_code=400, content={"detail": "Invalid data", "errors": errors})


# Global unhandled exception handler -> logs ERROR and sends email
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled error | path=%s | method=%s | client=%s",
        request.url.path,
        request.method,
        request.client.host if request.client else "unknown",
    )

    if error_emails_enabled() and email_service.is_configured():
        error_data = {
            "path": request.url.path,
            "method": request.method,
            "client": request.client.host if request.client else "unknown",
            "exception": exc,
            "timestamp": datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S"),
        }
        email_service.send_error_email(error_data)

    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=5009, reload=True)
