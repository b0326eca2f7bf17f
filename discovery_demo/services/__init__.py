"""Services package for the discovery call demo backend."""

from discovery_demo.services.agent_provisioner import AgentProvisioner
from discovery_demo.services.assistant_service import AssistantService
from discovery_demo.services.openai_service import OpenAIService
from discovery_demo.services.pipeline import PipelineSupervisor, SubmissionPipeline
from discovery_demo.services.voice_agent_service import VoiceAgentService
from discovery_demo.services.website_scraper_service import WebsiteScraperService

__all__ = [
    "AgentProvisioner",
    "AssistantService",
    "OpenAIService",
    "PipelineSupervisor",
    "SubmissionPipeline",
    "VoiceAgentService",
    "WebsiteScraperService",
]
