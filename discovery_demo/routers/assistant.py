"""Text chat with the sales assistant.

A thread is opened once per session with an assistant built from the
session's analysis; messages are then exchanged on that thread.
"""

import json
import logging

from fastapi import APIRouter, Depends

from discovery_demo.deps import get_assistant_service, get_session_repository
from discovery_demo.exceptions import DiscoveryDemoError, MissingParameterError
from discovery_demo.repositories.session_repository import AirtableSessionRepository
from discovery_demo.routers.utils import error_response, sanitize_for_log
from discovery_demo.schemas.assistant import (
    CreateThreadRequest,
    CreateThreadResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from discovery_demo.schemas.session import ErrorResponse
from discovery_demo.services.assistant_service import AssistantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant")

ERROR_RESPONSES = {500: {"model": ErrorResponse}}


@router.post("/create-thread", response_model=CreateThreadResponse, responses=ERROR_RESPONSES)
async def create_thread(
    payload: CreateThreadRequest,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
    assistants: AssistantService = Depends(get_assistant_service),
):
    """Create an assistant from the analysis and open a thread for it.

    The assistant id is stored on the session so later messages can use it.
    """
    try:
        missing = [
            name
            for name, value in (("analysis", payload.analysis), ("sessionId", payload.session_id))
            if not value
        ]
        if missing:
            raise MissingParameterError(*missing)

        if isinstance(payload.analysis, str):
            analysis_json = payload.analysis
        else:
            analysis_json = json.dumps(payload.analysis, indent=2, ensure_ascii=False)

        assistant_id = await assistants.create_assistant(analysis_json)
        await sessions.update(payload.session_id, assistant_id=assistant_id)
        thread_id = await assistants.create_thread()
    except Exception as e:
        logger.error(f"Error creating thread: {e}")
        return error_response("Failed to create thread", e)

    logger.info(
        f"Thread {thread_id} created for session {sanitize_for_log(payload.session_id)}"
    )
    return CreateThreadResponse(thread_id=thread_id, assistant_id=assistant_id)


@router.post("/send-message", response_model=SendMessageResponse, responses=ERROR_RESPONSES)
async def send_message(
    payload: SendMessageRequest,
    sessions: AirtableSessionRepository = Depends(get_session_repository),
    assistants: AssistantService = Depends(get_assistant_service),
):
    """Send a user message on a thread and return the assistant's reply."""
    try:
        missing = [
            name
            for name, value in (
                ("threadId", payload.thread_id),
                ("message", payload.message),
                ("sessionId", payload.session_id),
            )
            if not value
        ]
        if missing:
            raise MissingParameterError(*missing)

        record = await sessions.get(payload.session_id)
        if not record.assistant_id:
            raise DiscoveryDemoError("Assistant ID not found for session")

        reply = await assistants.send_message(
            payload.thread_id, record.assistant_id, payload.message
        )
    except Exception as e:
        logger.error(f"Error sending message: {e}")
        return error_response("Failed to send message", e)

    return SendMessageResponse(response=reply)
