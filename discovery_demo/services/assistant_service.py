"""Chat assistant integration using the OpenAI Assistants API.

Not part of the submission pipeline. The browser can create a thread with
an assistant briefed on the company analysis and exchange text messages
with it. Runs are polled with exponential backoff under an overall timeout.
"""

from __future__ import annotations

import asyncio
import logging

from openai import AsyncOpenAI

from discovery_demo.core.config import (
    ASSISTANT_RUN_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    OPENAI_MODEL,
)
from discovery_demo.exceptions import AssistantRunError, AssistantRunTimeout
from discovery_demo.services.prompt_builder import build_assistant_instructions

logger = logging.getLogger(__name__)

ASSISTANT_NAME = "Sofia AI Sales Agent"

# Poll backoff (seconds)
POLL_INITIAL_DELAY = 1.0
POLL_BACKOFF_FACTOR = 2.0
POLL_MAX_DELAY = 8.0

RUN_FAILED_STATUSES = {"failed", "cancelled", "expired", "incomplete", "requires_action"}


class AssistantService:
    """Creates assistants and threads and relays messages to them."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = OPENAI_MODEL,
        base_url: str | None = OPENAI_BASE_URL,
        run_timeout: float = ASSISTANT_RUN_TIMEOUT,
        poll_initial_delay: float = POLL_INITIAL_DELAY,
        poll_backoff_factor: float = POLL_BACKOFF_FACTOR,
        poll_max_delay: float = POLL_MAX_DELAY,
    ) -> None:
        self.api_key = (api_key or OPENAI_API_KEY or "").strip()
        self.model = model
        self.base_url = base_url
        self.run_timeout = run_timeout
        self.poll_initial_delay = poll_initial_delay
        self.poll_backoff_factor = poll_backoff_factor
        self.poll_max_delay = poll_max_delay
        self._client: AsyncOpenAI | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        """Get or create SDK client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def close(self) -> None:
        """Close SDK client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def create_assistant(self, analysis_json: str) -> str:
        """Create an assistant briefed on a company analysis and return its id."""
        client = self._get_client()
        assistant = await client.beta.assistants.create(
            name=ASSISTANT_NAME,
            instructions=build_assistant_instructions(analysis_json),
            model=self.model,
        )
        logger.info(f"Assistant created: {assistant.id}")
        return assistant.id

    async def create_thread(self) -> str:
        """Create an empty conversation thread and return its id."""
        client = self._get_client()
        thread = await client.beta.threads.create()
        logger.info(f"Thread created: {thread.id}")
        return thread.id

    async def send_message(self, thread_id: str, assistant_id: str, message: str) -> str:
        """Post a user message, run the assistant and return its reply.

        Raises:
            AssistantRunError: If the run ends in a failed state or has no text reply.
            AssistantRunTimeout: If the run does not complete within ``run_timeout``.
        """
        client = self._get_client()
        await client.beta.threads.messages.create(
            thread_id=thread_id, role="user", content=message
        )
        run = await client.beta.threads.runs.create(
            thread_id=thread_id, assistant_id=assistant_id
        )
        logger.info(f"Assistant run started: {run.id}")

        try:
            await asyncio.wait_for(
                self._wait_for_run(thread_id, run.id), timeout=self.run_timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Assistant run {run.id} timed out after {self.run_timeout}s")
            await self._cancel_run(thread_id, run.id)
            raise AssistantRunTimeout(
                f"Assistant run did not complete within {self.run_timeout:g}s"
            ) from e

        return await self._latest_reply(thread_id)

    async def _wait_for_run(self, thread_id: str, run_id: str) -> None:
        """Poll a run until it completes, backing off between checks."""
        client = self._get_client()
        delay = self.poll_initial_delay
        while True:
            run = await client.beta.threads.runs.retrieve(run_id=run_id, thread_id=thread_id)
            logger.debug(f"Run {run_id} status: {run.status}")

            if run.status == "completed":
                return
            if run.status in RUN_FAILED_STATUSES:
                raise AssistantRunError(f"Assistant run {run.status}")

            await asyncio.sleep(delay)
            delay = min(delay * self.poll_backoff_factor, self.poll_max_delay)

    async def _cancel_run(self, thread_id: str, run_id: str) -> None:
        """Best-effort cancel of a run that is still going."""
        try:
            await self._get_client().beta.threads.runs.cancel(
                run_id=run_id, thread_id=thread_id
            )
        except Exception as e:
            logger.warning(f"Could not cancel assistant run {run_id}: {e}")

    async def _latest_reply(self, thread_id: str) -> str:
        """Return the text of the newest message in a thread."""
        messages = await self._get_client().beta.threads.messages.list(
            thread_id=thread_id, order="desc", limit=1
        )
        for msg in messages.data:
            for block in msg.content:
                if getattr(block, "type", None) == "text":
                    return block.text.value
        raise AssistantRunError("Assistant run completed without a text reply")
