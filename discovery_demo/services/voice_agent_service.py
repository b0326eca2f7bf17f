"""Millis AI voice agent platform integration.

Builds agent configurations (prompt, voice, conversation-flow policy,
timeouts, privacy and speech-to-text settings) and registers them through
the platform's REST API. The browser opens the real-time audio session
directly against the platform using the returned agent id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from discovery_demo.core.config import (
    HTTP_TIMEOUT,
    MILLIS_API_URL,
    MILLIS_AUTH,
    MILLIS_TOKEN,
    MILLIS_VOICE_ID,
)
from discovery_demo.exceptions import VoiceAgentError

logger = logging.getLogger(__name__)

VOICE_PROVIDER = "elevenlabs"
VOICE_MODEL = "eleven_turbo_v2_5"
AGENT_LLM_MODEL = "gpt-4o"
AGENT_LANGUAGE = "no"

# Milliseconds
INACTIVITY_IDLE_TIME = 30_000
SESSION_MAX_DURATION = 3_600_000
SESSION_MAX_IDLE = 300_000

FILLER_MESSAGES = ["Jeg forstår", "Interessant", "La meg tenke på det"]
SESSION_TIMEOUT_MESSAGE = (
    "Økten vår er i ferd med å bli tidsavbrutt. Vil du planlegge en oppfølgingssamtale?"
)


@dataclass
class AgentProfile:
    """Persona-specific parts of a voice agent configuration.

    Attributes:
        name_prefix: Agent display name; the session id is appended.
        first_message: What the agent says when the call opens.
        terminate_instruction: When the agent should end the call.
        terminate_messages: Closing lines the agent may use.
        inactivity_message: Prompt spoken after a period of silence.
        include_extended_settings: Whether to send tools, vocabulary,
            language switching, speech-to-text and recording settings.
    """

    name_prefix: str
    first_message: str
    terminate_instruction: str
    terminate_messages: list[str] = field(default_factory=list)
    inactivity_message: str = ""
    include_extended_settings: bool = True


DISCOVERY_AGENT_PROFILE = AgentProfile(
    name_prefix="Discovery Call Agent",
    first_message=(
        "Hei, Adam fra Agava her. Min oppgave i dag er å kartlegge hvor langt dere "
        "er kommet med bruk av kunstig intelligens i avdelingen. Vi starter veldig "
        "konkret: hvilke IT-systemer bruker du daglig på jobben?"
    ),
    terminate_instruction=(
        "Avslutt samtalen høflig når du har samlet nok informasjon eller bestemt "
        "at det ikke er en god match"
    ),
    terminate_messages=[
        "Takk for tiden din i dag. Jeg har samlet verdifull innsikt om virksomheten din.",
        "Jeg setter pris på at du delte disse detaljene med meg. La oss planlegge et "
        "oppfølgingsmøte for å diskutere konkrete løsninger.",
    ],
    inactivity_message=(
        "Jeg har ikke hørt fra deg på en stund. Vil du at jeg skal fortsette med "
        "diskusjonen vår?"
    ),
)

SALES_AGENT_PROFILE = AgentProfile(
    name_prefix="Sales Agent Sofia",
    first_message=(
        "Hei! Jeg er Sofia, og jeg vil gjerne hjelpe deg med å forstå hvordan Bantaii "
        "kan effektivisere salgsarbeidet i din avdeling. Hvilke spørsmål har du om Bantaii?"
    ),
    terminate_instruction=(
        "Avslutt samtalen høflig når kunden er klar til å starte prøveperioden "
        "eller ikke er interessert"
    ),
    terminate_messages=[
        "Takk for tiden din i dag. La oss sette opp prøveperioden.",
        "Jeg setter pris på interessen. La oss planlegge et oppfølgingsmøte.",
    ],
    inactivity_message=(
        "Jeg har ikke hørt fra deg på en stund. Har du flere spørsmål om Bantaii?"
    ),
    include_extended_settings=False,
)


def build_agent_config(
    profile: AgentProfile,
    prompt: str,
    session_id: str,
    voice_id: str = MILLIS_VOICE_ID,
) -> dict[str, Any]:
    """Build the agent creation payload for the voice platform.

    Args:
        profile: Persona-specific settings.
        prompt: System prompt driving the conversation.
        session_id: Session the agent belongs to, used in the agent name.
        voice_id: Voice to speak with.

    Returns:
        Request body for ``POST /agents``.
    """
    flow: dict[str, Any] = {
        "user_start_first": False,
        "interruption": {
            "allowed": True,
            "keep_interruption_message": True,
            "first_messsage": True,  # field name as spelled by the platform
        },
        "response_delay": 0,
        "auto_fill_responses": {
            "response_gap_threshold": 0,
            "messages": list(FILLER_MESSAGES),
        },
        "agent_terminate_call": {
            "enabled": True,
            "instruction": profile.terminate_instruction,
            "messages": list(profile.terminate_messages),
        },
        "voicemail": {
            "action": "hangup",
            "message": "",
            "continue_on_voice_activity": True,
        },
        "inactivity_handling": {
            "idle_time": INACTIVITY_IDLE_TIME,
            "message": profile.inactivity_message,
        },
    }

    config: dict[str, Any] = {
        "prompt": prompt,
        "voice": {
            "provider": VOICE_PROVIDER,
            "voice_id": voice_id,
            "model": VOICE_MODEL,
            "settings": {},
        },
        "flow": flow,
        "first_message": profile.first_message,
        "language": AGENT_LANGUAGE,
        "vad_threshold": 0.5,
        "llm": {
            "model": AGENT_LLM_MODEL,
            "temperature": 0.7,
            "history_settings": {
                "history_message_limit": 10,
                "history_tool_result_limit": 5,
            },
        },
        "session_timeout": {
            "max_duration": SESSION_MAX_DURATION,
            "max_idle": SESSION_MAX_IDLE,
            "message": SESSION_TIMEOUT_MESSAGE,
        },
        "privacy_settings": {
            "opt_out_data_collection": False,
            "do_not_call_detection": True,
        },
    }

    if profile.include_extended_settings:
        flow["call_transfer"] = {"phone": "", "instruction": "", "messages": []}
        flow["dtmf_dial"] = {"enabled": False, "instruction": ""}
        config.update(
            {
                "tools": [],
                "millis_functions": [],
                "app_functions": [],
                "custom_vocabulary": {"keywords": {}},
                "switch_language": {"languages": ["en-US", "no"]},
                "speech_to_text": {"provider": "deepgram", "multilingual": True},
                "call_settings": {"enable_recording": True},
            }
        )

    return {
        "name": f"{profile.name_prefix} {session_id}",
        "config": config,
    }


class VoiceAgentService:
    """Client for the voice platform's agent API."""

    def __init__(
        self,
        base_url: str = MILLIS_API_URL,
        token: str | None = None,
        authorization: str | None = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token if token is not None else MILLIS_TOKEN
        self.authorization = authorization if authorization is not None else MILLIS_AUTH
        self.timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        """Check if platform credentials are configured."""
        return bool(self.base_url and (self.token or self.authorization))

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "token": self.token,
                    "authorization": self.authorization,
                    "Content-Type": "application/json",
                },
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    async def create_agent(self, payload: dict[str, Any]) -> str:
        """Register an agent configuration and return the platform's agent id.

        Raises:
            VoiceAgentError: If the request fails or the response carries no id.
        """
        try:
            client = await self._get_client()
            response = await client.post("/agents", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            logger.error(f"Agent creation failed: {error_msg}")
            raise VoiceAgentError(f"Failed to create voice agent: {error_msg}") from e
        except httpx.HTTPError as e:
            logger.error(f"Agent creation failed: {e}")
            raise VoiceAgentError(f"Failed to create voice agent: {e}") from e
        except ValueError as e:
            raise VoiceAgentError("Voice platform returned invalid JSON") from e

        agent_id = data.get("id") if isinstance(data, dict) else None
        if not agent_id:
            raise VoiceAgentError("Voice platform response did not include an agent id")

        logger.info(f"Voice agent created: {agent_id} ({payload.get('name')})")
        return str(agent_id)
