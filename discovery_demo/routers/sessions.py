"""Session callbacks from the browser's call UI.

The browser reports the voice platform session ids it opens and marks each
call completed when it ends. It also asks for the second (sales) agent once
the first call and the video are done.
"""

import logging

from fastapi import APIRouter, Depends

from discovery_demo.deps import get_agent_provisioner, get_session_repository
from discovery_demo.exceptions import MissingParameterError
from discovery_demo.models import CallStatus, can_transition
from discovery_demo.repositories.session_repository import AirtableSessionRepository
from discovery_demo.routers.utils import error_response, sanitize_for_log
from discovery_demo.schemas.session import (
    ErrorResponse,
    MessageResponse,
    MillisSessionRequest,
    SecondAgentResponse,
)
from discovery_demo.services.agent_provisioner import AgentProvisioner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions")

ERROR_RESPONSES = {500: {"model": ErrorResponse}}


async def _record_call_event(
    sessions: AirtableSessionRepository,
    session_id: str,
    status_field: str,
    target: CallStatus,
    **fields: object,
) -> None:
    """Write call fields, moving the call status only if it goes forward.

    A late "session started" callback must not undo a completed call, so
    the current status is read first.
    """
    record = await sessions.get(session_id)
    current = getattr(record, status_field)
    if can_transition(current, target):
        fields[status_field] = target
    elif current != target:
        logger.info(
            f"Session {sanitize_for_log(session_id)}: keeping {status_field}="
            f"{current.value}, ignoring {target.value}"
        )
    if fields:
        await sessions.update(session_id, **fields)


@router.post("/{session_id}/millis", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def record_millis_session(
    session_id: str,
    payload: MillisSessionRequest,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
):
    """Store the first call's voice session id and mark the call in progress."""
    try:
        if not payload.millis_session_id:
            raise MissingParameterError("millisSessionId")
        await _record_call_event(
            sessions,
            session_id,
            "call_status",
            CallStatus.IN_PROGRESS,
            millis_session_id=payload.millis_session_id,
        )
    except Exception as e:
        logger.error(f"Error updating Millis session ID: {e}")
        return error_response("Failed to update Millis session ID", e)

    return MessageResponse(message="Millis session ID updated")


@router.post(
    "/{session_id}/millis-second-call",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def record_second_call_millis_session(
    session_id: str,
    payload: MillisSessionRequest,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
):
    """Store the second call's voice session id and mark it in progress."""
    try:
        if not payload.millis_session_id:
            raise MissingParameterError("millisSessionId")
        await _record_call_event(
            sessions,
            session_id,
            "second_call_status",
            CallStatus.IN_PROGRESS,
            second_call_millis_session_id=payload.millis_session_id,
        )
    except Exception as e:
        logger.error(f"Error updating second call Millis session ID: {e}")
        return error_response("Failed to update second call Millis session ID", e)

    return MessageResponse(message="Second call Millis session ID updated")


@router.post(
    "/{session_id}/call-complete",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def complete_call(
    session_id: str,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
):
    """Mark the first call completed."""
    try:
        await _record_call_event(sessions, session_id, "call_status", CallStatus.COMPLETED)
    except Exception as e:
        logger.error(f"Error updating call status: {e}")
        return error_response("Failed to update call status", e)

    return MessageResponse(message="Call status updated to completed")


@router.post(
    "/{session_id}/second-call-complete",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def complete_second_call(
    session_id: str,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
):
    """Mark the second call completed."""
    try:
        await _record_call_event(
            sessions, session_id, "second_call_status", CallStatus.COMPLETED
        )
    except Exception as e:
        logger.error(f"Error updating second call status: {e}")
        return error_response("Failed to update second call status", e)

    return MessageResponse(message="Second call status updated to completed")


@router.post(
    "/{session_id}/create-second-agent",
    response_model=SecondAgentResponse,
    responses=ERROR_RESPONSES,
)
async def create_second_agent(
    session_id: str,
    provisioner: AgentProvisioner = Depends(get_agent_provisioner),
):
    """Provision the sales agent for the second call from the stored analysis."""
    try:
        agent_id = await provisioner.provision_sales_agent(session_id)
    except Exception as e:
        logger.error(f"Error creating second agent: {e}")
        return error_response("Failed to create second agent", e)

    return SecondAgentResponse(agent_id=agent_id)
