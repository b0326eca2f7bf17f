"""Core configuration for the discovery call demo backend."""
