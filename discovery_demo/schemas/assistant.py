from typing import Any, Literal

from discovery_demo.schemas.session import CamelModel


class CreateThreadRequest(CamelModel):
    analysis: dict[str, Any] | str | None = None
    session_id: str | None = None


class CreateThreadResponse(CamelModel):
    success: Literal[True] = True
    thread_id: str
    assistant_id: str


class SendMessageRequest(CamelModel):
    thread_id: str | None = None
    message: str | None = None
    session_id: str | None = None


class SendMessageResponse(CamelModel):
    success: Literal[True] = True
    response: str
