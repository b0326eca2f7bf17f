"""Tests for voice agent provisioning."""

import json

import pytest

from discovery_demo.exceptions import (
    AgentProvisioningError,
    LLMServiceError,
    SessionNotFoundError,
    VoiceAgentError,
)
from discovery_demo.models import AnalysisResult, CallStatus


class TestProvisionDiscoveryAgent:
    @pytest.mark.asyncio
    async def test_creates_agent_with_analysis_in_prompt(self, services, sample_analysis):
        analysis = AnalysisResult.model_validate(sample_analysis)
        agent_id = await services.provisioner.provision_discovery_agent("rec123", analysis)

        assert agent_id == "agent-1"
        payload = services.voice.payloads[0]
        assert payload["name"] == "Discovery Call Agent rec123"
        assert "X AS" in payload["config"]["prompt"]

    @pytest.mark.asyncio
    async def test_platform_error_wrapped(self, services, sample_analysis):
        services.voice.error = VoiceAgentError("HTTP 500")
        with pytest.raises(AgentProvisioningError, match="HTTP 500"):
            await services.provisioner.provision_discovery_agent(
                "rec123", AnalysisResult.model_validate(sample_analysis)
            )


class TestProvisionSalesAgent:
    """Test second agent creation from the stored analysis."""

    async def _create_ready_session(self, services, sample_analysis, **fields):
        record = await services.sessions.create(
            company_url="https://x.no", analysis=json.dumps(sample_analysis), **fields
        )
        return record.id

    @pytest.mark.asyncio
    async def test_creates_sales_agent_and_updates_record(self, services, sample_analysis):
        session_id = await self._create_ready_session(services, sample_analysis)

        agent_id = await services.provisioner.provision_sales_agent(session_id)

        assert agent_id == "agent-1"
        record = await services.sessions.get(session_id)
        assert record.second_call_agent_id == "agent-1"
        assert record.second_call_status == CallStatus.NOT_STARTED
        payload = services.voice.payloads[0]
        assert payload["name"] == f"Sales Agent Sofia {session_id}"
        assert "Faster follow-up for X AS" in payload["config"]["prompt"]

    @pytest.mark.asyncio
    async def test_existing_second_call_status_kept(self, services, sample_analysis):
        """Test an in-progress second call is not reset to NotStarted."""
        session_id = await self._create_ready_session(
            services, sample_analysis, second_call_status=CallStatus.IN_PROGRESS
        )

        await services.provisioner.provision_sales_agent(session_id)

        record = await services.sessions.get(session_id)
        assert record.second_call_status == CallStatus.IN_PROGRESS
        assert "second_call_status" not in services.sessions.updates[-1][1]

    @pytest.mark.asyncio
    async def test_missing_analysis_uses_generic_context(self, services):
        record = await services.sessions.create(company_url="https://x.no")

        await services.provisioner.provision_sales_agent(record.id)

        assert "the company" in services.voice.payloads[0]["config"]["prompt"]

    @pytest.mark.asyncio
    async def test_invalid_stored_analysis(self, services):
        record = await services.sessions.create(analysis="{not json")
        with pytest.raises(AgentProvisioningError, match="not valid JSON"):
            await services.provisioner.provision_sales_agent(record.id)

    @pytest.mark.asyncio
    async def test_unknown_session(self, services):
        with pytest.raises(SessionNotFoundError):
            await services.provisioner.provision_sales_agent("recMissing")

    @pytest.mark.asyncio
    async def test_completion_failure_wrapped(self, services, sample_analysis):
        session_id = await self._create_ready_session(services, sample_analysis)

        async def failing_strategy(context):
            raise LLMServiceError("OpenAI request failed: timeout")

        services.llm.generate_sales_strategy = failing_strategy
        with pytest.raises(AgentProvisioningError, match="timeout"):
            await services.provisioner.provision_sales_agent(session_id)

        record = await services.sessions.get(session_id)
        assert record.second_call_agent_id is None
        assert services.voice.payloads == []
