"""FastAPI application for the Bantaii discovery call demo.

This module provides the main FastAPI application instance with CORS
middleware configuration, the service handles built at startup and router
registration.
"""

# Load environment variables before any other imports
from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from discovery_demo import __version__
from discovery_demo.core.config import CORS_ORIGINS, LOG_LEVEL
from discovery_demo.repositories import AirtableSessionRepository
from discovery_demo.routers import assistant, sessions, submissions
from discovery_demo.routers.utils import error_response
from discovery_demo.services import (
    AgentProvisioner,
    AssistantService,
    OpenAIService,
    PipelineSupervisor,
    SubmissionPipeline,
    VoiceAgentService,
    WebsiteScraperService,
)

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# API version and metadata
API_VERSION = __version__
API_TITLE = "Discovery Call Demo API"
API_DESCRIPTION = """
Backend for the Bantaii discovery call demo.

This API provides endpoints for:
- Submitting a lead form and tracking its processing status
- Recording voice call sessions started from the browser
- Creating the follow-up sales agent
- Chatting with a sales assistant briefed on the company analysis
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Builds the service handles once and stores them on ``app.state``. At
    shutdown, running pipelines are cancelled before the clients close.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup is complete.
    """
    # Startup: build service handles
    session_repository = AirtableSessionRepository()
    scraper = WebsiteScraperService()
    llm = OpenAIService()
    voice = VoiceAgentService()
    provisioner = AgentProvisioner(session_repository, llm, voice)
    supervisor = PipelineSupervisor(
        SubmissionPipeline(session_repository, scraper, llm, provisioner)
    )
    assistant_service = AssistantService()

    app.state.session_repository = session_repository
    app.state.agent_provisioner = provisioner
    app.state.pipeline_supervisor = supervisor
    app.state.assistant_service = assistant_service

    logger.info(f"Airtable configured: {session_repository.is_configured}")
    logger.info(f"OpenAI configured: {llm.is_configured}")
    logger.info(f"Millis configured: {voice.is_configured}")
    if not (session_repository.is_configured and llm.is_configured and voice.is_configured):
        logger.warning("Some services are not configured - submissions will fail")
    logger.info("Application startup complete")

    yield

    # Shutdown: clean up resources
    logger.info("Shutting down application...")
    await supervisor.shutdown()
    for client in (scraper, llm, voice, session_repository, assistant_service):
        await client.close()
    logger.info("Service clients closed")


# Create FastAPI application instance
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Configure CORS middleware
# CORS_ORIGINS is a comma-separated list; when unset any origin is allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS or ["*"],
    allow_credentials=bool(CORS_ORIGINS),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
    ],
    expose_headers=["Content-Length", "Content-Type"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return malformed request bodies in the standard error envelope."""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return error_response(
        "Invalid request body", exc, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """Root endpoint returning API information."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "status": "operational",
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy"}


# Router registration
app.include_router(submissions.router, prefix="/api", tags=["Submissions"])
app.include_router(sessions.router, prefix="/api", tags=["Sessions"])
app.include_router(assistant.router, prefix="/api", tags=["Assistant"])
