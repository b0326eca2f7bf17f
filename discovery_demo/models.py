"""Pydantic models for the discovery call demo.

Covers the session record kept in the external store, the ephemeral scraped
page, the structured LLM outputs (company analysis, relevant page selection,
sales strategy, conversation flow) and the status enums that drive the
submission pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(word.capitalize() for word in components[1:])


class SessionStatus(str, Enum):
    """Top-level status of a submission."""

    PROCESSING = "Processing"
    READY = "Ready"
    FAILED = "Failed"


class ScrapingStatus(str, Enum):
    """Progress of the scrape and analysis steps."""

    IN_PROGRESS = "InProgress"
    PRIMARY = "PrimaryScraping"
    SECONDARY = "SecondaryScraping"
    ANALYZING = "AnalyzingContent"
    COMPLETED = "Completed"
    FAILED = "Failed"


class AgentStatus(str, Enum):
    """Whether the first voice agent has been created."""

    NOT_CREATED = "NotCreated"
    CREATED = "Created"


class CallStatus(str, Enum):
    """Lifecycle of a voice call, reported by the browser."""

    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


# Forward order of every status field. SecondaryScraping may be skipped.
_STATUS_ORDER: dict[type[Enum], list[Enum]] = {
    SessionStatus: [SessionStatus.PROCESSING, SessionStatus.READY],
    ScrapingStatus: [
        ScrapingStatus.IN_PROGRESS,
        ScrapingStatus.PRIMARY,
        ScrapingStatus.SECONDARY,
        ScrapingStatus.ANALYZING,
        ScrapingStatus.COMPLETED,
    ],
    AgentStatus: [AgentStatus.NOT_CREATED, AgentStatus.CREATED],
    CallStatus: [CallStatus.NOT_STARTED, CallStatus.IN_PROGRESS, CallStatus.COMPLETED],
}

_FAILED_STATUS: dict[type[Enum], Enum] = {
    SessionStatus: SessionStatus.FAILED,
    ScrapingStatus: ScrapingStatus.FAILED,
}


def can_transition(current: Enum | None, target: Enum) -> bool:
    """Check whether moving a status field from ``current`` to ``target`` is allowed.

    Statuses only move forward in their declared order. ``Failed`` can be
    reached from any state that is not already terminal, and nothing can be
    reached from ``Failed``. A missing current value accepts any target.

    Args:
        current: The value currently stored, or None if the field is empty.
        target: The value about to be written.

    Returns:
        True if the transition keeps the field monotonic.
    """
    if current is None:
        return True

    status_type = type(target)
    if type(current) is not status_type:
        raise TypeError(
            f"Cannot compare {type(current).__name__} with {status_type.__name__}"
        )

    order = _STATUS_ORDER[status_type]
    failed = _FAILED_STATUS.get(status_type)

    if current == failed:
        return False
    if target == failed:
        return current != order[-1]
    return order.index(target) > order.index(current)


class SessionRecord(BaseModel):
    """One prospect's journey through scraping, analysis and voice calls.

    Mirrors a row in the external session table. Every field except ``id``
    is optional because the store omits empty cells.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )

    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company_url: str | None = None
    submission_date: str | None = None

    status: SessionStatus | None = None
    scraping_status: ScrapingStatus | None = None
    agent_status: AgentStatus | None = None
    call_status: CallStatus | None = None
    second_call_status: CallStatus | None = None

    analysis: str | None = None
    agent_id: str | None = None
    second_call_agent_id: str | None = None
    millis_session_id: str | None = None
    second_call_millis_session_id: str | None = None
    secondary_url: str | None = None
    error_message: str | None = None
    assistant_id: str | None = None


@dataclass
class PageLink:
    """Anchor element extracted from a page."""

    href: str | None
    text: str


@dataclass
class ScrapedPage:
    """Content extracted from a single web page. Never persisted."""

    url: str
    title: str = ""
    description: str = ""
    headings: list[str] = field(default_factory=list)
    content: str = ""
    relevant_links: list[str] = field(default_factory=list)

    def to_prompt_dict(self) -> dict[str, Any]:
        """Shape the page for inclusion in an LLM prompt."""
        return {
            "title": self.title,
            "description": self.description,
            "headings": self.headings,
            "content": self.content,
            "relevantLinks": self.relevant_links,
        }


class CompanyOverview(BaseModel):
    name: str
    industry: str = ""
    main_offerings: list[str] = Field(default_factory=list)
    target_market: str = ""


class PainPoints(BaseModel):
    identified_challenges: list[str] = Field(default_factory=list)
    severity_level: Literal["low", "medium", "high"]
    impact_areas: list[str] = Field(default_factory=list)


class CompetitiveAnalysis(BaseModel):
    advantages: list[str] = Field(default_factory=list)
    unique_selling_points: list[str] = Field(default_factory=list)
    market_position: str = ""


class AnalysisResult(BaseModel):
    """Structured company analysis returned by the content analyzer."""

    company_overview: CompanyOverview
    pain_points: PainPoints
    structure: str = ""
    size_estimate: str = ""
    mission_statement: str = ""
    competitive_analysis: CompetitiveAnalysis


class RelevantPageSelection(BaseModel):
    """LLM choice of the best secondary page to scrape."""

    most_relevant_url: str | None = None
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class SalesStrategy(BaseModel):
    key_value_props: list[str] = Field(default_factory=list)
    objection_handlers: list[str] = Field(default_factory=list)
    conversation_hooks: list[str] = Field(default_factory=list)
    success_metrics: list[str] = Field(default_factory=list)


class ConversationFlow(BaseModel):
    opening_approaches: list[str] = Field(default_factory=list)
    discovery_questions: list[str] = Field(default_factory=list)
    value_demonstrations: list[str] = Field(default_factory=list)
    closing_techniques: list[str] = Field(default_factory=list)


class CompanyContext(BaseModel):
    """Condensed view of a stored analysis used to brief the sales agent.

    Built leniently from whatever analysis JSON is on the record, so a
    partial or empty analysis still yields a usable context.
    """

    name: str = "the company"
    industry: str = "their industry"
    target_market: str = "their market"
    main_offerings: list[str] = Field(default_factory=list)
    pain_points: list[str] = Field(default_factory=list)
    advantages: list[str] = Field(default_factory=list)

    @classmethod
    def from_analysis(cls, analysis: dict[str, Any]) -> "CompanyContext":
        """Build a context from a raw analysis dict, filling gaps with defaults."""
        overview = analysis.get("company_overview") or {}
        pain_points = analysis.get("pain_points") or {}
        competitive = analysis.get("competitive_analysis") or {}
        defaults = cls()

        def _strings(value: Any) -> list[str]:
            if not isinstance(value, list):
                return []
            return [item for item in value if isinstance(item, str)]

        return cls(
            name=overview.get("name") or defaults.name,
            industry=overview.get("industry") or defaults.industry,
            target_market=overview.get("target_market") or defaults.target_market,
            main_offerings=_strings(overview.get("main_offerings")),
            pain_points=_strings(pain_points.get("identified_challenges")),
            advantages=_strings(competitive.get("advantages")),
        )
