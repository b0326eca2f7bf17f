"""Tests for the status rules and Pydantic models of the discovery call demo."""

import pytest
from pydantic import ValidationError

from discovery_demo.models import (
    AgentStatus,
    AnalysisResult,
    CallStatus,
    CompanyContext,
    RelevantPageSelection,
    ScrapedPage,
    ScrapingStatus,
    SessionRecord,
    SessionStatus,
    can_transition,
)


class TestCanTransition:
    """Status fields only move forward; Failed is terminal."""

    def test_empty_field_accepts_anything(self):
        """Test that an unset field can take any value."""
        assert can_transition(None, CallStatus.COMPLETED) is True
        assert can_transition(None, SessionStatus.FAILED) is True

    def test_forward_moves_allowed(self):
        """Test each forward step of the scraping status."""
        steps = [
            ScrapingStatus.IN_PROGRESS,
            ScrapingStatus.PRIMARY,
            ScrapingStatus.SECONDARY,
            ScrapingStatus.ANALYZING,
            ScrapingStatus.COMPLETED,
        ]
        for current, target in zip(steps, steps[1:]):
            assert can_transition(current, target) is True

    def test_secondary_step_may_be_skipped(self):
        """Test PrimaryScraping can go straight to AnalyzingContent."""
        assert can_transition(ScrapingStatus.PRIMARY, ScrapingStatus.ANALYZING) is True

    def test_backward_moves_rejected(self):
        """Test that statuses never move back."""
        assert can_transition(ScrapingStatus.ANALYZING, ScrapingStatus.PRIMARY) is False
        assert can_transition(CallStatus.COMPLETED, CallStatus.IN_PROGRESS) is False
        assert can_transition(SessionStatus.READY, SessionStatus.PROCESSING) is False
        assert can_transition(AgentStatus.CREATED, AgentStatus.NOT_CREATED) is False

    def test_same_value_is_not_a_move(self):
        """Test that rewriting the current value is not a forward move."""
        assert can_transition(CallStatus.IN_PROGRESS, CallStatus.IN_PROGRESS) is False

    def test_failed_reachable_from_in_progress_states(self):
        """Test Failed can be reached from every non-terminal state."""
        for current in (
            ScrapingStatus.IN_PROGRESS,
            ScrapingStatus.PRIMARY,
            ScrapingStatus.SECONDARY,
            ScrapingStatus.ANALYZING,
        ):
            assert can_transition(current, ScrapingStatus.FAILED) is True
        assert can_transition(SessionStatus.PROCESSING, SessionStatus.FAILED) is True

    def test_failed_not_reachable_from_completed(self):
        """Test that a finished run cannot be marked failed."""
        assert can_transition(ScrapingStatus.COMPLETED, ScrapingStatus.FAILED) is False
        assert can_transition(SessionStatus.READY, SessionStatus.FAILED) is False

    def test_nothing_after_failed(self):
        """Test that Failed is terminal."""
        assert can_transition(SessionStatus.FAILED, SessionStatus.READY) is False
        assert can_transition(ScrapingStatus.FAILED, ScrapingStatus.COMPLETED) is False
        assert can_transition(ScrapingStatus.FAILED, ScrapingStatus.FAILED) is False

    def test_mixed_status_types_rejected(self):
        """Test comparing different status fields raises."""
        with pytest.raises(TypeError):
            can_transition(CallStatus.NOT_STARTED, SessionStatus.READY)


class TestSessionRecord:
    """Test SessionRecord aliasing and optional fields."""

    def test_only_id_required(self):
        """Test a record with only an id."""
        record = SessionRecord(id="rec123")
        assert record.status is None
        assert record.second_call_status is None

    def test_accepts_camel_case_keys(self):
        """Test population from camelCase keys."""
        record = SessionRecord.model_validate(
            {"id": "rec1", "scrapingStatus": "AnalyzingContent", "agentId": "a1"}
        )
        assert record.scraping_status == ScrapingStatus.ANALYZING
        assert record.agent_id == "a1"

    def test_dumps_camel_case(self):
        """Test serialization uses camelCase aliases."""
        record = SessionRecord(id="rec1", call_status=CallStatus.IN_PROGRESS)
        data = record.model_dump(mode="json")
        assert data["callStatus"] == "InProgress"
        assert "call_status" not in data

    def test_unknown_status_value_rejected(self):
        """Test that a status outside the enum fails validation."""
        with pytest.raises(ValidationError):
            SessionRecord(id="rec1", status="Done")


class TestAnalysisResult:
    """Test AnalysisResult validation."""

    def test_valid_analysis(self, sample_analysis):
        """Test a complete analysis parses."""
        result = AnalysisResult.model_validate(sample_analysis)
        assert result.company_overview.name == "X AS"
        assert result.pain_points.severity_level == "medium"

    def test_optional_text_fields_default_empty(self, sample_analysis):
        """Test structure, size estimate and mission default to empty strings."""
        for key in ("structure", "size_estimate", "mission_statement"):
            sample_analysis.pop(key)
        result = AnalysisResult.model_validate(sample_analysis)
        assert result.structure == ""
        assert result.mission_statement == ""

    def test_invalid_severity_rejected(self, sample_analysis):
        """Test severity must be low, medium or high."""
        sample_analysis["pain_points"] = {
            **sample_analysis["pain_points"],
            "severity_level": "critical",
        }
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(sample_analysis)

    def test_missing_overview_rejected(self, sample_analysis):
        """Test the company overview is required."""
        sample_analysis.pop("company_overview")
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(sample_analysis)


class TestRelevantPageSelection:
    def test_confidence_bounds(self):
        """Test confidence score must be within 0 and 1."""
        with pytest.raises(ValidationError):
            RelevantPageSelection(most_relevant_url="https://x.no/about", confidence_score=1.5)

    def test_url_may_be_null(self):
        selection = RelevantPageSelection.model_validate(
            {"most_relevant_url": None, "confidence_score": 0.1, "reasoning": "none fit"}
        )
        assert selection.most_relevant_url is None


class TestScrapedPage:
    def test_prompt_dict_uses_relevant_links_key(self):
        """Test the prompt payload shape."""
        page = ScrapedPage(url="https://x.no", title="X", relevant_links=["https://x.no/about"])
        payload = page.to_prompt_dict()
        assert payload["relevantLinks"] == ["https://x.no/about"]
        assert "url" not in payload


class TestCompanyContext:
    """Test building the sales context from a stored analysis."""

    def test_from_full_analysis(self, sample_analysis):
        """Test all fields are copied from the analysis."""
        context = CompanyContext.from_analysis(sample_analysis)
        assert context.name == "X AS"
        assert context.industry == "Software"
        assert context.target_market == "Nordic SMBs"
        assert context.main_offerings == ["Planning tools"]
        assert context.pain_points == ["Manual sales follow-up"]
        assert context.advantages == ["Local support"]

    def test_from_empty_analysis_uses_defaults(self):
        """Test the generic defaults when nothing is stored."""
        context = CompanyContext.from_analysis({})
        assert context.name == "the company"
        assert context.industry == "their industry"
        assert context.target_market == "their market"
        assert context.pain_points == []

    def test_ignores_malformed_lists(self):
        """Test non-list and non-string entries are dropped."""
        context = CompanyContext.from_analysis(
            {
                "company_overview": {"name": "Y", "main_offerings": "not a list"},
                "pain_points": {"identified_challenges": ["ok", 3, None]},
            }
        )
        assert context.main_offerings == []
        assert context.pain_points == ["ok"]
