from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import logging
import pytz
from app.routers import signatures
from app.schemas.common import ErrorResponse
from app.services.expiry import run_expiry_sweep
from app.core.config import settings as app_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

timezone = pytz.timezone(app_settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=timezone)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting Invoice Signature API...")

    if app_settings.EXPIRY_SWEEP_ENABLED:
        scheduler.add_job(
            run_expiry_sweep,
            trigger=IntervalTrigger(minutes=app_settings.EXPIRY_SWEEP_MINUTES, timezone=timezone),
            id="signature_expiry_sweep",
            name="Expire Stale Signature Requests",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(
            f"Expiry sweep scheduled every {app_settings.EXPIRY_SWEEP_MINUTES} minutes "
            f"({app_settings.TIMEZONE})"
        )
    else:
        logger.info("Expiry sweep is disabled in configuration")

    yield

    # Shutdown
    logger.info("Shutting down Invoice Signature API...")
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Expiry sweep scheduler stopped")


app = FastAPI(
    title="Invoice Signature API",
    description="Electronic signatures for invoices and proformas",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Errors leave the API as `{"error": message}`."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


@app.get("/health")
async def health_check():
    """Health check endpoint with scheduler status"""
    next_sweep = None
    if scheduler.running:
        job = scheduler.get_job("signature_expiry_sweep")
        if job and job.next_run_time:
            next_sweep = job.next_run_time.isoformat()

    return {
        "status": "ok",
        "service": "invoice-signatures",
        "scheduler": "running" if scheduler.running else "stopped",
        "expiry_sweep_enabled": app_settings.EXPIRY_SWEEP_ENABLED,
        "next_sweep": next_sweep,
        "timezone": app_settings.TIMEZONE
    }


app.include_router(signatures.router)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8008, reload=True)
