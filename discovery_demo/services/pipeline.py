"""Submission pipeline: scrape, analyze and provision a voice agent per session.

One pipeline run per form submission. Each step advances the session's
scraping status; any failure writes Failed to both status fields together
with the error message and stops the run. There is no retry and no
resumption from a failed step.

Runs are started through ``PipelineSupervisor`` so the submit request can
return immediately while the run stays observable and cancellable.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any

from discovery_demo.models import (
    AgentStatus,
    ScrapedPage,
    ScrapingStatus,
    SessionStatus,
    can_transition,
)
from discovery_demo.repositories.session_repository import AirtableSessionRepository
from discovery_demo.services.agent_provisioner import AgentProvisioner
from discovery_demo.services.openai_service import OpenAIService
from discovery_demo.services.website_scraper_service import WebsiteScraperService

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Processing cancelled"


@dataclass
class PipelineRun:
    """Progress of a single pipeline run, as last written to the store."""

    session_id: str
    company_url: str
    status: SessionStatus = SessionStatus.PROCESSING
    scraping_status: ScrapingStatus = ScrapingStatus.IN_PROGRESS
    secondary_url: str | None = None
    agent_id: str | None = None
    error_message: str | None = None


class SubmissionPipeline:
    """Runs scrape -> select -> (secondary scrape) -> analyze -> provision."""

    def __init__(
        self,
        sessions: AirtableSessionRepository,
        scraper: WebsiteScraperService,
        llm: OpenAIService,
        provisioner: AgentProvisioner,
    ) -> None:
        self.sessions = sessions
        self.scraper = scraper
        self.llm = llm
        self.provisioner = provisioner

    async def run(self, session_id: str, company_url: str) -> PipelineRun:
        """Process one submission to Ready or Failed.

        Failures are recorded on the session rather than raised. Cancelling
        the run records it as failed and re-raises the cancellation.

        Returns:
            The final state of the run.
        """
        run = PipelineRun(session_id=session_id, company_url=company_url)
        try:
            await self._process(run)
        except asyncio.CancelledError:
            logger.warning(f"Pipeline cancelled for session {session_id}")
            await self._fail(run, CANCELLED_MESSAGE)
            raise
        except Exception as e:
            logger.exception(f"Pipeline failed for session {session_id}")
            await self._fail(run, str(e) or type(e).__name__)
        return run

    async def _process(self, run: PipelineRun) -> None:
        await self._advance(run, scraping_status=ScrapingStatus.PRIMARY)
        primary = await self.scraper.scrape(run.company_url)

        secondary: ScrapedPage | None = None
        relevant_url = await self.llm.find_relevant_page(primary.relevant_links)
        if relevant_url and relevant_url not in primary.relevant_links:
            logger.warning(
                f"Session {run.session_id}: selected page {relevant_url} is not one of "
                f"the candidate links, skipping secondary scrape"
            )
            relevant_url = None
        if relevant_url:
            await self._advance(run, scraping_status=ScrapingStatus.SECONDARY)
            secondary = await self.scraper.scrape(relevant_url)
            run.secondary_url = relevant_url

        await self._advance(run, scraping_status=ScrapingStatus.ANALYZING)
        analysis = await self.llm.analyze_content(primary, secondary)

        agent_id = await self.provisioner.provision_discovery_agent(run.session_id, analysis)
        run.agent_id = agent_id

        await self._advance(
            run,
            status=SessionStatus.READY,
            scraping_status=ScrapingStatus.COMPLETED,
            agent_status=AgentStatus.CREATED,
            analysis=analysis.model_dump_json(),
            agent_id=agent_id,
            secondary_url=run.secondary_url or "",
        )
        logger.info(f"Pipeline completed for session {run.session_id}")

    async def _advance(
        self,
        run: PipelineRun,
        *,
        status: SessionStatus | None = None,
        scraping_status: ScrapingStatus | None = None,
        **fields: Any,
    ) -> None:
        """Write forward status moves (plus any extra fields) to the store."""
        if status is not None:
            if not can_transition(run.status, status):
                raise RuntimeError(f"Invalid status transition {run.status.value} -> {status.value}")
            fields["status"] = status
        if scraping_status is not None:
            if not can_transition(run.scraping_status, scraping_status):
                raise RuntimeError(
                    f"Invalid scraping status transition "
                    f"{run.scraping_status.value} -> {scraping_status.value}"
                )
            fields["scraping_status"] = scraping_status

        await self.sessions.update(run.session_id, **fields)

        if status is not None:
            run.status = status
        if scraping_status is not None:
            run.scraping_status = scraping_status
        logger.info(
            f"Session {run.session_id}: status={run.status.value}, "
            f"scraping={run.scraping_status.value}"
        )

    async def _fail(self, run: PipelineRun, message: str) -> None:
        """Record the run as failed. Errors while recording are logged only."""
        run.error_message = message
        try:
            await self.sessions.update(
                run.session_id,
                status=SessionStatus.FAILED,
                scraping_status=ScrapingStatus.FAILED,
                error_message=message,
            )
        except Exception:
            logger.exception(f"Could not record failure for session {run.session_id}")
        run.status = SessionStatus.FAILED
        run.scraping_status = ScrapingStatus.FAILED


class PipelineSupervisor:
    """Keeps handles to running pipeline tasks.

    ``start`` returns the task immediately so the caller can respond while
    the run continues in the background. Tasks can be looked up, awaited
    or cancelled by session id; finished tasks are dropped.
    """

    def __init__(self, pipeline: SubmissionPipeline) -> None:
        self.pipeline = pipeline
        self._tasks: dict[str, asyncio.Task[PipelineRun]] = {}

    @property
    def running(self) -> list[str]:
        """Session ids with a pipeline still in progress."""
        return list(self._tasks)

    def start(self, session_id: str, company_url: str) -> asyncio.Task[PipelineRun]:
        """Start a pipeline run in the background."""
        task = asyncio.create_task(
            self.pipeline.run(session_id, company_url), name=f"pipeline-{session_id}"
        )
        self._tasks[session_id] = task
        task.add_done_callback(partial(self._on_done, session_id))
        logger.info(f"Pipeline started for session {session_id}")
        return task

    def get(self, session_id: str) -> asyncio.Task[PipelineRun] | None:
        return self._tasks.get(session_id)

    async def wait(self, session_id: str) -> PipelineRun | None:
        """Wait for a running pipeline to finish. Returns None if none is running."""
        task = self._tasks.get(session_id)
        if task is None:
            return None
        return await task

    def cancel(self, session_id: str) -> bool:
        """Request cancellation of a running pipeline."""
        task = self._tasks.get(session_id)
        if task is None or task.done():
            return False
        return task.cancel()

    async def shutdown(self) -> None:
        """Cancel every running pipeline and wait for them to wind down."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} running pipeline(s)")

    def _on_done(self, session_id: str, task: asyncio.Task[PipelineRun]) -> None:
        if self._tasks.get(session_id) is task:
            del self._tasks[session_id]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Pipeline task for session {session_id} crashed: {error!r}")
