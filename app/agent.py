"""
Response generator — client for the persona's text-generation service.

One chat-completion call per turn against an OpenAI-compatible endpoint,
with fixed sampling temperature, an output token cap and a request timeout.
Every transport or service failure surfaces as UpstreamError; the caller
decides how to degrade.
"""

import logging
import re
from typing import Dict, List, Optional, Protocol

from openai import OpenAI, OpenAIError

from app import config
from app.errors import UpstreamError
from app.persona import PERSONA_NAME

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "hmm, can u explain again? im confused..."

# Labels the model sometimes prefixes its reply with
REPLY_PREFIXES = (
    f"{PERSONA_NAME}:", "Rahul:", "Assistant:", "Response:", "Reply:",
    "Agent:", "Victim:", "Output:",
)


class ReplyGenerator(Protocol):
    def generate(self, turns: List[Dict[str, str]]) -> str:
        ...


class ResponseGenerator:
    """Persona reply generator backed by the OpenAI SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client=None,
    ):
        self.model = model or config.LLM_MODEL
        self.temperature = config.LLM_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or config.LLM_MAX_TOKENS
        self.timeout = timeout or config.LLM_TIMEOUT_SECONDS

        if client is not None:
            self.client = client
            return

        api_key = api_key if api_key is not None else config.LLM_API_KEY
        if not api_key:
            logger.warning("LLM_API_KEY not set. Persona replies will be omitted.")
            self.client = None
        else:
            self.client = OpenAI(
                api_key=api_key,
                base_url=base_url or config.LLM_BASE_URL,
                timeout=self.timeout,
                max_retries=0,
            )

    def generate(self, turns: List[Dict[str, str]]) -> str:
        """Return the persona's reply for the given chat turns."""
        if self.client is None:
            raise UpstreamError(details="LLM_API_KEY not configured")

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=turns,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except OpenAIError as e:
            raise UpstreamError(details=f"{type(e).__name__}: {e}") from e

        content = None
        if completion.choices:
            content = completion.choices[0].message.content
        return self._clean_reply(content or "")

    def _clean_reply(self, reply: str) -> str:
        """Strip reasoning blocks, speaker labels, quotes and markdown."""
        reply = re.sub(r'<think>.*?</think>', '', reply, flags=re.DOTALL).strip()

        for prefix in REPLY_PREFIXES:
            if reply.lower().startswith(prefix.lower()):
                reply = reply[len(prefix):].strip()

        if len(reply) >= 2 and reply[0] == reply[-1] and reply[0] in "\"'":
            reply = reply[1:-1].strip()

        reply = re.sub(r'\*+', '', reply).strip()

        return reply or FALLBACK_REPLY
