"""Environment configuration for the discovery call demo backend.

Values are read once at import time. ``discovery_demo.main`` loads the
``.env`` file before anything imports this module, so every constant here
reflects the environment the process was started with.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    return float(raw)


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OpenAI (chat completions in JSON mode and the Assistants API)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

# Airtable holds the session records
AIRTABLE_API_KEY = os.getenv("AIRTABLE_API_KEY", "")
AIRTABLE_BASE_ID = os.getenv("AIRTABLE_BASE_ID", "")
AIRTABLE_TABLE_NAME = os.getenv("AIRTABLE_TABLE_NAME", "Sessions")
AIRTABLE_API_URL = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0")

# Millis AI voice agent platform
MILLIS_API_URL = os.getenv("MILLIS_API_URL", "https://api-eu-west.millis.ai")
MILLIS_TOKEN = os.getenv("MILLIS_TOKEN", "")
MILLIS_AUTH = os.getenv("MILLIS_AUTH", "")
MILLIS_VOICE_ID = os.getenv("MILLIS_VOICE_ID", "dgrgQcxISbZtq517iweJ")

# Timeouts (seconds)
SCRAPER_TIMEOUT = _get_float("SCRAPER_TIMEOUT", 10.0)
HTTP_TIMEOUT = _get_float("HTTP_TIMEOUT", 30.0)
ASSISTANT_RUN_TIMEOUT = _get_float("ASSISTANT_RUN_TIMEOUT", 60.0)

# Comma-separated list; empty means any origin
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "").split(",")
    if origin.strip()
]
