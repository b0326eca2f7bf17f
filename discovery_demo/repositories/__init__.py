"""Session record store accessors."""

from discovery_demo.repositories.session_repository import AirtableSessionRepository

__all__ = ["AirtableSessionRepository"]
