"""Voice agent provisioning for the discovery and sales calls."""

from __future__ import annotations

import json
import logging

from discovery_demo.exceptions import AgentProvisioningError, DiscoveryDemoError
from discovery_demo.models import AnalysisResult, CallStatus, CompanyContext
from discovery_demo.repositories.session_repository import AirtableSessionRepository
from discovery_demo.services.openai_service import OpenAIService
from discovery_demo.services.prompt_builder import build_discovery_prompt, build_sales_prompt
from discovery_demo.services.voice_agent_service import (
    DISCOVERY_AGENT_PROFILE,
    SALES_AGENT_PROFILE,
    VoiceAgentService,
    build_agent_config,
)

logger = logging.getLogger(__name__)


class AgentProvisioner:
    """Creates the voice agents a session talks to.

    The discovery agent is created by the submission pipeline right after
    analysis. The sales agent is created on request from the browser once
    the first call and the video are done; its prompt goes through two extra
    completions (sales strategy, then conversation flow) before assembly.
    """

    def __init__(
        self,
        sessions: AirtableSessionRepository,
        llm: OpenAIService,
        voice: VoiceAgentService,
    ) -> None:
        self.sessions = sessions
        self.llm = llm
        self.voice = voice

    async def provision_discovery_agent(
        self, session_id: str, analysis: AnalysisResult
    ) -> str:
        """Create the first-call agent with the analysis embedded in its prompt.

        Returns:
            The voice platform's agent id.
        """
        logger.info(f"Creating discovery agent for session {session_id}")
        payload = build_agent_config(
            DISCOVERY_AGENT_PROFILE, build_discovery_prompt(analysis), session_id
        )
        try:
            return await self.voice.create_agent(payload)
        except DiscoveryDemoError as e:
            raise AgentProvisioningError(f"Failed to create discovery agent: {e}") from e

    async def provision_sales_agent(self, session_id: str) -> str:
        """Create the second-call agent from the analysis stored on the session.

        Writes the new agent id to the record. The second call status is set
        to NotStarted only if the call has no status yet.

        Returns:
            The voice platform's agent id.

        Raises:
            SessionNotFoundError: If the session does not exist.
            AgentProvisioningError: If any completion or the agent creation fails.
        """
        record = await self.sessions.get(session_id)
        logger.info(f"Creating sales agent for session {session_id}")

        try:
            analysis = json.loads(record.analysis or "{}")
        except json.JSONDecodeError as e:
            raise AgentProvisioningError(f"Stored analysis is not valid JSON: {e}") from e
        if not isinstance(analysis, dict):
            analysis = {}

        context = CompanyContext.from_analysis(analysis)

        try:
            strategy = await self.llm.generate_sales_strategy(context)
            flow = await self.llm.generate_conversation_flow(context, strategy)
            prompt = build_sales_prompt(context, strategy, flow)
            agent_id = await self.voice.create_agent(
                build_agent_config(SALES_AGENT_PROFILE, prompt, session_id)
            )
        except DiscoveryDemoError as e:
            logger.error(f"Sales agent creation failed for session {session_id}: {e}")
            raise AgentProvisioningError(f"Failed to create second agent: {e}") from e

        fields: dict[str, object] = {"second_call_agent_id": agent_id}
        if record.second_call_status is None:
            fields["second_call_status"] = CallStatus.NOT_STARTED
        await self.sessions.update(session_id, **fields)
        return agent_id
