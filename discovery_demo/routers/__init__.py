"""Routers package for API endpoints.

This package contains the FastAPI routers for the discovery call demo.
"""

from discovery_demo.routers import assistant, sessions, submissions

__all__ = ["assistant", "sessions", "submissions"]
