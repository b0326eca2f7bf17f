from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from discovery_demo.models import (
    AgentStatus,
    CallStatus,
    ScrapingStatus,
    SessionStatus,
    to_camel,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )


class SubmitRequest(CamelModel):
    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    company_url: str | None = Field(default=None, max_length=2000)


class SubmitResponse(CamelModel):
    success: Literal[True] = True
    session_id: str
    message: str = "Processing started"


class StatusResponse(CamelModel):
    success: Literal[True] = True
    status: SessionStatus | None = None
    scraping_status: ScrapingStatus | None = None
    agent_status: AgentStatus | None = None
    call_status: CallStatus | None = None
    agent_id: str | None = None
    second_call_agent_id: str | None = None
    second_call_status: CallStatus | None = None
    analysis: str | None = None
    millis_session_id: str | None = None
    second_call_millis_session_id: str | None = None
    error_message: str | None = None


class MillisSessionRequest(CamelModel):
    millis_session_id: str | None = None


class MessageResponse(CamelModel):
    success: Literal[True] = True
    message: str


class SecondAgentResponse(CamelModel):
    success: Literal[True] = True
    agent_id: str
    message: str = "Second agent created successfully"


class ErrorResponse(CamelModel):
    success: Literal[False] = False
    error: str
    details: str | None = None
