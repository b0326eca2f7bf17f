"""Session record store backed by an Airtable table.

Thin create/find/update accessors over the Airtable REST API. There is no
local caching and no concurrency control: concurrent updates from the
pipeline and from call callbacks are serialized (or not) by Airtable.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from discovery_demo.core.config import (
    AIRTABLE_API_KEY,
    AIRTABLE_API_URL,
    AIRTABLE_BASE_ID,
    AIRTABLE_TABLE_NAME,
    HTTP_TIMEOUT,
)
from discovery_demo.exceptions import SessionNotFoundError, SessionStoreError
from discovery_demo.models import SessionRecord

logger = logging.getLogger(__name__)

# SessionRecord attribute -> Airtable column
FIELD_COLUMNS: dict[str, str] = {
    "name": "Name",
    "email": "Email",
    "phone": "Phone",
    "company_url": "Company URL",
    "submission_date": "Submission Date",
    "status": "Status",
    "scraping_status": "Scraping Status",
    "agent_status": "Agent Status",
    "call_status": "Call Status",
    "second_call_status": "Second Call Status",
    "analysis": "Analysis",
    "agent_id": "Agent ID",
    "second_call_agent_id": "Second Call Agent ID",
    "millis_session_id": "Millis Session ID",
    "second_call_millis_session_id": "Second Call Millis Session ID",
    "secondary_url": "Secondary URL",
    "error_message": "Error Message",
    "assistant_id": "Assistant ID",
}

COLUMN_FIELDS: dict[str, str] = {column: attr for attr, column in FIELD_COLUMNS.items()}


def to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate record attributes into Airtable column values."""
    columns: dict[str, Any] = {}
    for attr, value in fields.items():
        if attr not in FIELD_COLUMNS:
            raise ValueError(f"Unknown session field: {attr}")
        if isinstance(value, Enum):
            value = value.value
        columns[FIELD_COLUMNS[attr]] = value
    return columns


def from_airtable(payload: dict[str, Any]) -> SessionRecord:
    """Build a SessionRecord from an Airtable record payload."""
    columns = payload.get("fields") or {}
    data: dict[str, Any] = {"id": payload["id"]}
    for column, value in columns.items():
        attr = COLUMN_FIELDS.get(column)
        if attr is not None:
            data[attr] = value
    return SessionRecord.model_validate(data)


class AirtableSessionRepository:
    """Create, find and update session records in Airtable."""

    def __init__(
        self,
        api_key: str | None = None,
        base_id: str | None = None,
        table_name: str = AIRTABLE_TABLE_NAME,
        api_url: str = AIRTABLE_API_URL,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self.api_key = (api_key or AIRTABLE_API_KEY or "").strip()
        self.base_id = base_id or AIRTABLE_BASE_ID
        self.table_name = table_name
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        """Check if the API key and base id are configured."""
        return bool(self.api_key and self.base_id)

    @property
    def table_url(self) -> str:
        return f"{self.api_url}/{self.base_id}/{quote(self.table_name, safe='')}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    async def _request(
        self,
        method: str,
        url: str,
        *,
        session_id: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> SessionRecord:
        try:
            client = await self._get_client()
            response = await client.request(method, url, json=json)
            if response.status_code == 404 and session_id is not None:
                raise SessionNotFoundError(session_id)
            response.raise_for_status()
            return from_airtable(response.json())
        except SessionNotFoundError:
            raise
        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            logger.error(f"Airtable {method} failed: {error_msg}")
            raise SessionStoreError(f"Session store request failed: {error_msg}") from e
        except httpx.HTTPError as e:
            logger.error(f"Airtable {method} failed: {e}")
            raise SessionStoreError(f"Session store request failed: {e}") from e
        except (KeyError, ValueError, ValidationError) as e:
            raise SessionStoreError(f"Unexpected session store response: {e}") from e

    async def create(self, **fields: Any) -> SessionRecord:
        """Create a session record.

        Args:
            **fields: SessionRecord attributes to set. None values are skipped.

        Returns:
            The created record, including its store-assigned id.
        """
        present = {attr: value for attr, value in fields.items() if value is not None}
        record = await self._request(
            "POST", self.table_url, json={"fields": to_columns(present)}
        )
        logger.info(f"Session record created: {record.id}")
        return record

    async def get(self, session_id: str) -> SessionRecord:
        """Find a session record by id.

        Raises:
            SessionNotFoundError: If no record has this id.
        """
        return await self._request(
            "GET", f"{self.table_url}/{quote(session_id, safe='')}", session_id=session_id
        )

    async def update(self, session_id: str, **fields: Any) -> SessionRecord:
        """Update selected fields of a session record.

        Only the given fields are written; other columns are left untouched.

        Raises:
            SessionNotFoundError: If no record has this id.
        """
        return await self._request(
            "PATCH",
            f"{self.table_url}/{quote(session_id, safe='')}",
            session_id=session_id,
            json={"fields": to_columns(fields)},
        )
