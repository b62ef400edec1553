"""
FastAPI application for the inbound voice lead agent
Twilio -> ElevenLabs call setup and post-call lead ingestion
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request, BackgroundTasks
from fastapi.responses import JSONResponse, Response
import structlog

from . import __version__
from .config import get_settings
from .database.init_db import db_manager
from .database.store import SqlAlchemyLeadStore
from .alerts.telegram_alerts import TelegramLeadNotifier
from .llm.extractor import TranscriptExtractor
from .telephony.elevenlabs import (
    ElevenLabsClient, TelephonyError, build_fallback_twiml, build_stream_twiml
)
from .utils.helpers import safe_json_loads
from .utils.monitoring import MonitoringManager
from .webhooks.ingestion import IngestionPipeline

settings = get_settings()

# Setup structured logging
logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger("leadbridge.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("Starting leadbridge", version=__version__, environment=settings.environment)

    try:
        await db_manager.init_database()
        logger.info(
            "Routes registered",
            routes=["GET /health", "POST /incoming-call", "POST /conversation-end"],
            port=settings.port
        )
        yield
    finally:
        logger.info("Shutting down application")
        await db_manager.close()
        logger.info("Application shutdown completed")


app = FastAPI(
    title="Voice Lead Agent",
    description="Inbound voice lead qualification: call setup and post-call ingestion",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None
)

# Default wiring, replaceable through app.state
app.state.pipeline = IngestionPipeline.from_settings(
    settings,
    extractor=TranscriptExtractor(),
    lead_store=SqlAlchemyLeadStore(db_manager),
    notifier=TelegramLeadNotifier(),
)
app.state.elevenlabs = ElevenLabsClient()
app.state.monitoring = MonitoringManager(db_manager)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests"""
    start_time = datetime.now(timezone.utc)
    request_id = f"{int(start_time.timestamp())}-{id(request)}"

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else None
    )

    try:
        response = await call_next(request)
    except Exception as e:
        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.error(
            "Request failed",
            request_id=request_id,
            error=str(e),
            duration_seconds=round(duration, 3)
        )
        raise

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        duration_seconds=round(duration, 3)
    )
    return response


# Error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.status_code,
                "message": exc.detail,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": 500,
                "message": "Internal server error",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


@app.get("/health")
async def health_check(request: Request):
    """Service health with database check"""
    health_status = await request.app.state.monitoring.health_check()
    status_code = 200 if health_status["status"] == "ok" else 503
    return JSONResponse(status_code=status_code, content=health_status)


# Twilio fires this when someone dials the agent's number
@app.post("/incoming-call")
async def incoming_call(request: Request):
    """Return TwiML that streams the call to the ElevenLabs agent"""
    form = await request.form()
    call_sid = form.get("CallSid")
    logger.info("Incoming call received", from_=form.get("From"), to=form.get("To"), call_sid=call_sid)

    try:
        signed_url = await request.app.state.elevenlabs.get_signed_url()
    except Exception as e:
        logger.error(
            "Failed to connect call to ElevenLabs",
            call_sid=call_sid,
            error=str(e),
            expected=isinstance(e, TelephonyError)
        )
        return Response(content=build_fallback_twiml(settings.support_email), media_type="text/xml")

    logger.info("Call connected to ElevenLabs agent", call_sid=call_sid)
    return Response(content=build_stream_twiml(signed_url), media_type="text/xml")


# ElevenLabs fires this after the conversation ends
@app.post("/conversation-end")
async def conversation_end(request: Request, background_tasks: BackgroundTasks):
    """Acknowledge immediately, ingest the lead in the background"""
    body = await request.body()
    payload = safe_json_loads(body.decode("utf-8", errors="replace"), default={})
    if not isinstance(payload, dict):
        logger.warning("Conversation-end body is not a JSON object", body_type=type(payload).__name__)
        payload = {}

    ack = request.app.state.pipeline.handle(payload, background_tasks)
    return JSONResponse(content=ack)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "leadbridge.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development,
    )
