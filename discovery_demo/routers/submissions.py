"""Submission router: accepts the lead form and reports session status."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from discovery_demo.deps import get_pipeline_supervisor, get_session_repository
from discovery_demo.exceptions import MissingParameterError
from discovery_demo.models import AgentStatus, CallStatus, ScrapingStatus, SessionStatus
from discovery_demo.repositories.session_repository import AirtableSessionRepository
from discovery_demo.routers.utils import error_response, sanitize_for_log
from discovery_demo.schemas.session import ErrorResponse, StatusResponse, SubmitRequest, SubmitResponse
from discovery_demo.services.pipeline import PipelineSupervisor

logger = logging.getLogger(__name__)

router = APIRouter()

SUBMISSION_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@router.post(
    "/submit",
    response_model=SubmitResponse,
    responses={500: {"model": ErrorResponse}},
)
async def submit(
    payload: SubmitRequest,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
    supervisor: PipelineSupervisor = Depends(get_pipeline_supervisor),
):
    """Create a session record and start processing it in the background.

    Returns as soon as the record exists; progress is read from
    ``GET /status/{session_id}``.
    """
    logger.info(
        f"New submission received: name={sanitize_for_log(payload.name)!r}, "
        f"company_url={sanitize_for_log(payload.company_url)!r}"
    )
    try:
        company_url = (payload.company_url or "").strip()
        if not company_url:
            raise MissingParameterError("companyUrl")

        record = await sessions.create(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            company_url=company_url,
            submission_date=datetime.now(timezone.utc).strftime(SUBMISSION_DATE_FORMAT),
            status=SessionStatus.PROCESSING,
            scraping_status=ScrapingStatus.IN_PROGRESS,
            agent_status=AgentStatus.NOT_CREATED,
            call_status=CallStatus.NOT_STARTED,
        )
    except Exception as e:
        logger.error(f"Failed to submit form: {e}")
        return error_response("Failed to submit form", e)

    supervisor.start(record.id, company_url)
    return SubmitResponse(session_id=record.id)


@router.get(
    "/status/{session_id}",
    response_model=StatusResponse,
    responses={500: {"model": ErrorResponse}},
)
async def get_status(
    session_id: str,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
):
    """Return the status fields, analysis and agent/session ids of a session."""
    try:
        record = await sessions.get(session_id)
    except Exception as e:
        logger.warning(f"Failed to get status for {sanitize_for_log(session_id)}: {e}")
        return error_response("Failed to get status", e)

    return StatusResponse(
        status=record.status,
        scraping_status=record.scraping_status,
        agent_status=record.agent_status,
        call_status=record.call_status,
        agent_id=record.agent_id,
        second_call_agent_id=record.second_call_agent_id,
        second_call_status=record.second_call_status,
        analysis=record.analysis,
        millis_session_id=record.millis_session_id,
        second_call_millis_session_id=record.second_call_millis_session_id,
        error_message=record.error_message,
    )
