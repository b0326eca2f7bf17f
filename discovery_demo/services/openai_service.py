"""OpenAI service for structured (JSON mode) completions.

Wraps the OpenAI Python SDK for the company analysis, the relevant page
selection and the two refinement steps used to brief the sales agent.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import AsyncOpenAI
from pydantic import ValidationError

from discovery_demo.core.config import OPENAI_API_KEY, OPENAI_BASE_URL, OPENAI_MODEL
from discovery_demo.exceptions import AnalysisError, LLMServiceError
from discovery_demo.models import (
    AnalysisResult,
    CompanyContext,
    ConversationFlow,
    RelevantPageSelection,
    SalesStrategy,
    ScrapedPage,
)

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.7
RELEVANT_PAGE_TEMPERATURE = 0.3
REFINEMENT_TEMPERATURE = 0.7

# Characters of page text sent per page
MAX_PAGE_CONTENT_LENGTH = 12000

ANALYSIS_SYSTEM_PROMPT = """You are an AI assistant analyzing company websites to prepare for discovery calls.

Return the analysis in this exact JSON format:
{
  "company_overview": {
    "name": string,
    "industry": string,
    "main_offerings": string[],
    "target_market": string
  },
  "pain_points": {
    "identified_challenges": string[],
    "severity_level": "low" | "medium" | "high",
    "impact_areas": string[]
  },
  "structure": string,
  "size_estimate": string,
  "mission_statement": string,
  "competitive_analysis": {
    "advantages": string[],
    "unique_selling_points": string[],
    "market_position": string
  }
}"""

RELEVANT_PAGE_SYSTEM_PROMPT = """You are an AI assistant that analyzes URLs to find the most relevant about or contact page.

Return the result in this exact JSON format:
{
  "most_relevant_url": string | null,
  "confidence_score": number,
  "reasoning": string
}

most_relevant_url is the best about/contact page URL from the list, or null if none fits.
confidence_score is between 0 and 1."""

SALES_STRATEGY_SYSTEM_PROMPT = """You are a strategic sales consultant. Based on the company analysis, generate specific sales strategies and value propositions for Bantaii.

Return the response in this exact JSON format:
{
  "key_value_props": string[],
  "objection_handlers": string[],
  "conversation_hooks": string[],
  "success_metrics": string[]
}"""

CONVERSATION_FLOW_SYSTEM_PROMPT = """You are a conversation design expert. Create a natural conversation flow for selling Bantaii.

Return the response in this exact JSON format:
{
  "opening_approaches": string[],
  "discovery_questions": string[],
  "value_demonstrations": string[],
  "closing_techniques": string[]
}"""


class OpenAIService:
    """Service for structured LLM completions via the OpenAI API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = OPENAI_MODEL,
        base_url: str | None = OPENAI_BASE_URL,
    ) -> None:
        # Strip to avoid hidden whitespace/newlines from .env files
        self.api_key = (api_key or OPENAI_API_KEY or "").strip()
        self.model = model
        self.base_url = base_url
        self._client: AsyncOpenAI | None = None

    @property
    def is_configured(self) -> bool:
        """Check if the API key is configured."""
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

    async def _structured_completion(
        self,
        *,
        system_prompt: str,
        user_content: str,
        temperature: float,
    ) -> dict[str, Any]:
        """Run a JSON-mode chat completion and decode the response object.

        Raises:
            LLMServiceError: If the request fails or the reply is not a JSON object.
        """
        if not self.api_key:
            raise LLMServiceError("OpenAI is not configured (missing OPENAI_API_KEY)")

        try:
            client = self._get_client()
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=temperature,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise LLMServiceError(f"OpenAI request failed: {e}") from e

        if not resp.choices:
            raise LLMServiceError("LLM returned no choices")
        content = (resp.choices[0].message.content or "").strip()
        try:
            data = json.loads(self._extract_json(content))
        except json.JSONDecodeError as e:
            raise LLMServiceError(f"Failed to parse LLM response as JSON: {e}") from e

        if not isinstance(data, dict):
            raise LLMServiceError("LLM response is not a JSON object")
        return data

    def _extract_json(self, text: str) -> str:
        """Extract JSON from response, handling markdown code blocks."""
        text = text.strip()
        if text.startswith("```"):
            lines = text.split("\n")
            lines = [line for line in lines if not line.startswith("```")]
            text = "\n".join(lines)
        return text.strip()

    def _page_payload(self, page: ScrapedPage) -> str:
        payload = page.to_prompt_dict()
        payload["content"] = payload["content"][:MAX_PAGE_CONTENT_LENGTH]
        return json.dumps(payload, ensure_ascii=False)

    async def analyze_content(
        self,
        primary: ScrapedPage,
        secondary: ScrapedPage | None = None,
    ) -> AnalysisResult:
        """Analyze scraped website content into a fixed-shape company summary.

        Args:
            primary: The company's main page.
            secondary: Optional about/contact page.

        Returns:
            The parsed analysis.

        Raises:
            AnalysisError: If the request fails or the response does not match the schema.
        """
        logger.info(f"Starting content analysis for {primary.url}")

        user_content = f"Primary website content:\n{self._page_payload(primary)}\n"
        if secondary is not None:
            user_content += f"\nAdditional page content:\n{self._page_payload(secondary)}"

        try:
            data = await self._structured_completion(
                system_prompt=ANALYSIS_SYSTEM_PROMPT,
                user_content=user_content,
                temperature=ANALYSIS_TEMPERATURE,
            )
            result = AnalysisResult.model_validate(data)
        except LLMServiceError as e:
            raise AnalysisError(f"Failed to analyze content: {e}") from e
        except ValidationError as e:
            raise AnalysisError(
                f"Failed to analyze content: response does not match schema ({e.error_count()} errors)"
            ) from e

        logger.info(
            f"Content analysis complete: company={result.company_overview.name!r}, "
            f"industry={result.company_overview.industry!r}, "
            f"pain points={len(result.pain_points.identified_challenges)}"
        )
        return result

    async def find_relevant_page(self, links: list[str]) -> str | None:
        """Ask the model for the single best about/contact page to scrape next.

        Any failure is logged and treated as "no secondary page".

        Args:
            links: Candidate URLs from the primary page.

        Returns:
            The selected URL, or None.
        """
        if not links:
            return None

        try:
            data = await self._structured_completion(
                system_prompt=RELEVANT_PAGE_SYSTEM_PROMPT,
                user_content=(
                    "Analyze these URLs and select the most relevant about or contact page:\n"
                    f"{json.dumps(links)}"
                ),
                temperature=RELEVANT_PAGE_TEMPERATURE,
            )
            selection = RelevantPageSelection.model_validate(data)
        except Exception as e:
            logger.warning(f"Relevant page selection failed, continuing without it: {e}")
            return None

        logger.info(
            f"Relevant page selected: {selection.most_relevant_url} "
            f"(confidence {selection.confidence_score:.2f}): {selection.reasoning}"
        )
        return selection.most_relevant_url or None

    async def generate_sales_strategy(self, context: CompanyContext) -> SalesStrategy:
        """Generate value propositions and objection handlers for a company."""
        data = await self._structured_completion(
            system_prompt=SALES_STRATEGY_SYSTEM_PROMPT,
            user_content=f"Company Context: {context.model_dump_json(indent=2)}",
            temperature=REFINEMENT_TEMPERATURE,
        )
        try:
            return SalesStrategy.model_validate(data)
        except ValidationError as e:
            raise LLMServiceError(f"Sales strategy does not match schema: {e}") from e

    async def generate_conversation_flow(
        self,
        context: CompanyContext,
        strategy: SalesStrategy,
    ) -> ConversationFlow:
        """Design the conversation flow for a sales call given a strategy."""
        data = await self._structured_completion(
            system_prompt=CONVERSATION_FLOW_SYSTEM_PROMPT,
            user_content=(
                f"Company Context: {context.model_dump_json(indent=2)}\n"
                f"Sales Strategy: {strategy.model_dump_json(indent=2)}"
            ),
            temperature=REFINEMENT_TEMPERATURE,
        )
        try:
            return ConversationFlow.model_validate(data)
        except ValidationError as e:
            raise LLMServiceError(f"Conversation flow does not match schema: {e}") from e
