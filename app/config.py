"""
Runtime configuration, read once from the environment (and a local .env file).
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str):
    return tuple(part.strip() for part in value.split(",") if part.strip())


APP_VERSION = "1.0.0"

# Raw API keys accepted by the honeypot endpoint (hashed before storage)
HONEYPOT_API_KEYS = _csv(os.getenv("HONEYPOT_API_KEYS", ""))

# Text-generation gateway (OpenAI-compatible)
LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY", "")
LLM_BASE_URL = os.getenv("LLM_BASE_URL") or None
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.8"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "150"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "20"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "10000"))
