"""FastAPI dependencies returning the service handles built at startup.

Handles live on ``app.state`` (see ``discovery_demo.main.lifespan``). Tests
swap them for fakes through ``app.dependency_overrides``.
"""

from fastapi import Request

from discovery_demo.repositories.session_repository import AirtableSessionRepository
from discovery_demo.services.agent_provisioner import AgentProvisioner
from discovery_demo.services.assistant_service import AssistantService
from discovery_demo.services.pipeline import PipelineSupervisor


def get_session_repository(request: Request) -> AirtableSessionRepository:
    return request.app.state.session_repository


def get_pipeline_supervisor(request: Request) -> PipelineSupervisor:
    return request.app.state.pipeline_supervisor


def get_agent_provisioner(request: Request) -> AgentProvisioner:
    return request.app.state.agent_provisioner


def get_assistant_service(request: Request) -> AssistantService:
    return request.app.state.assistant_service
