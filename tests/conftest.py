"""Pytest fixtures for discovery call demo tests.

This module provides in-memory stand-ins for the external services (session
store, scraper, LLM, voice platform, assistant) and a test client wired to
them through ``app.dependency_overrides``.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from discovery_demo.deps import (
    get_agent_provisioner,
    get_assistant_service,
    get_pipeline_supervisor,
    get_session_repository,
)
from discovery_demo.exceptions import ScrapeError, SessionNotFoundError
from discovery_demo.main import app
from discovery_demo.models import (
    AnalysisResult,
    ConversationFlow,
    SalesStrategy,
    ScrapedPage,
    SessionRecord,
)
from discovery_demo.repositories.session_repository import to_columns
from discovery_demo.services.agent_provisioner import AgentProvisioner
from discovery_demo.services.pipeline import PipelineSupervisor, SubmissionPipeline

SAMPLE_ANALYSIS = {
    "company_overview": {
        "name": "X AS",
        "industry": "Software",
        "main_offerings": ["Planning tools"],
        "target_market": "Nordic SMBs",
    },
    "pain_points": {
        "identified_challenges": ["Manual sales follow-up"],
        "severity_level": "medium",
        "impact_areas": ["Sales"],
    },
    "structure": "Flat",
    "size_estimate": "10-50 employees",
    "mission_statement": "Make planning simple",
    "competitive_analysis": {
        "advantages": ["Local support"],
        "unique_selling_points": ["Norwegian UI"],
        "market_position": "Challenger",
    },
}


class FakeSessionRepository:
    """In-memory session store with the repository's interface.

    Ids are handed out as rec123, rec124, ... and every write is kept in
    ``updates`` so tests can check the order of status moves.
    """

    def __init__(self) -> None:
        self.records: dict[str, SessionRecord] = {}
        self.updates: list[tuple[str, dict]] = []
        self._next_id = 123

    async def create(self, **fields) -> SessionRecord:
        to_columns(fields)
        record_id = f"rec{self._next_id}"
        self._next_id += 1
        present = {k: v for k, v in fields.items() if v is not None}
        record = SessionRecord(id=record_id, **present)
        self.records[record_id] = record
        return record

    async def get(self, session_id: str) -> SessionRecord:
        if session_id not in self.records:
            raise SessionNotFoundError(session_id)
        return self.records[session_id]

    async def update(self, session_id: str, **fields) -> SessionRecord:
        to_columns(fields)
        record = await self.get(session_id)
        self.updates.append((session_id, dict(fields)))
        record = record.model_copy(update=fields)
        self.records[session_id] = record
        return record

    async def close(self) -> None:
        pass


class FakeScraper:
    """Returns canned pages; raises ``error`` if one is set."""

    def __init__(self) -> None:
        self.error: Exception | None = None
        self.scraped: list[str] = []

    async def scrape(self, url: str) -> ScrapedPage:
        self.scraped.append(url)
        if self.error is not None:
            raise self.error
        return ScrapedPage(
            url=url,
            title="X AS",
            description="Planning tools",
            headings=["Welcome"],
            content="We build planning tools.",
            relevant_links=[f"{url.rstrip('/')}/about"],
        )


class FakeLLM:
    """Canned structured completions."""

    def __init__(self) -> None:
        self.relevant_url: str | None = None
        self.analysis_error: Exception | None = None
        self.analyzed: list[tuple[ScrapedPage, ScrapedPage | None]] = []

    async def find_relevant_page(self, links: list[str]) -> str | None:
        return self.relevant_url if links else None

    async def analyze_content(self, primary, secondary=None) -> AnalysisResult:
        self.analyzed.append((primary, secondary))
        if self.analysis_error is not None:
            raise self.analysis_error
        return AnalysisResult.model_validate(SAMPLE_ANALYSIS)

    async def generate_sales_strategy(self, context) -> SalesStrategy:
        return SalesStrategy(key_value_props=[f"Faster follow-up for {context.name}"])

    async def generate_conversation_flow(self, context, strategy) -> ConversationFlow:
        return ConversationFlow(opening_approaches=["Hei!"])

    async def close(self) -> None:
        pass


class FakeVoice:
    """Records agent payloads and returns sequential agent ids."""

    def __init__(self) -> None:
        self.payloads: list[dict] = []
        self.error: Exception | None = None

    async def create_agent(self, payload: dict) -> str:
        if self.error is not None:
            raise self.error
        self.payloads.append(payload)
        return f"agent-{len(self.payloads)}"

    async def close(self) -> None:
        pass


class FakeAssistant:
    """Assistant service stand-in with fixed ids and replies."""

    def __init__(self) -> None:
        self.instructions: list[str] = []
        self.messages: list[tuple[str, str, str]] = []
        self.reply = "Hei! Hvordan kan jeg hjelpe?"

    async def create_assistant(self, analysis_json: str) -> str:
        self.instructions.append(analysis_json)
        return "asst_1"

    async def create_thread(self) -> str:
        return "thread_1"

    async def send_message(self, thread_id: str, assistant_id: str, message: str) -> str:
        self.messages.append((thread_id, assistant_id, message))
        return self.reply

    async def close(self) -> None:
        pass


def build_services() -> SimpleNamespace:
    """Wire the real pipeline and provisioner to in-memory fakes."""
    sessions = FakeSessionRepository()
    scraper = FakeScraper()
    llm = FakeLLM()
    voice = FakeVoice()
    provisioner = AgentProvisioner(sessions, llm, voice)
    pipeline = SubmissionPipeline(sessions, scraper, llm, provisioner)
    return SimpleNamespace(
        sessions=sessions,
        scraper=scraper,
        llm=llm,
        voice=voice,
        provisioner=provisioner,
        pipeline=pipeline,
        supervisor=PipelineSupervisor(pipeline),
        assistant=FakeAssistant(),
    )


@pytest.fixture
def services() -> SimpleNamespace:
    """Fresh set of fakes for one test."""
    return build_services()


@pytest.fixture
def client(services):
    """Test client for the FastAPI application, backed by the fakes.

    Used as a context manager so background pipeline tasks keep running on
    the client's event loop between requests.
    """
    app.dependency_overrides[get_session_repository] = lambda: services.sessions
    app.dependency_overrides[get_pipeline_supervisor] = lambda: services.supervisor
    app.dependency_overrides[get_agent_provisioner] = lambda: services.provisioner
    app.dependency_overrides[get_assistant_service] = lambda: services.assistant
    try:
        with TestClient(app) as test_client:
            yield test_client
            test_client.portal.call(services.supervisor.shutdown)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_analysis() -> dict:
    """Analysis dict as the content analyzer returns it."""
    return dict(SAMPLE_ANALYSIS)


@pytest.fixture
def scrape_error() -> ScrapeError:
    return ScrapeError("Failed to scrape website https://x.no: HTTP 404")
