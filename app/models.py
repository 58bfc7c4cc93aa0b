"""
Pydantic models for the Honeypot Conversation API.
Covers request/response schemas, the extracted-intelligence bundle and
the scam analysis result.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


# ── Enumerations ────────────────────────────────────────────────

class MessageRole(str, Enum):
    SCAMMER = "scammer"
    AGENT = "agent"
    SYSTEM = "system"


class IntelligenceType(str, Enum):
    BANK_ACCOUNT = "bank_account"
    UPI_ID = "upi_id"
    PHISHING_URL = "phishing_url"
    PHONE_NUMBER = "phone_number"
    EMAIL = "email"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


# ── Request Models ──────────────────────────────────────────────

# Accepted body fields for the scam message, in priority order
MESSAGE_FIELDS = ("message", "content", "text", "body", "query", "input")


class HoneypotRequest(BaseModel):
    """Incoming payload on POST /honeypot. Clients disagree on where the
    message lives, so every accepted field is read leniently."""

    # unknown keys are kept so a rejected body can be described in the logs
    model_config = ConfigDict(extra="allow")

    message: Optional[Any] = None
    content: Optional[Any] = None
    text: Optional[Any] = None
    body: Optional[Any] = None
    query: Optional[Any] = None
    input: Optional[Any] = None
    conversation_id: Optional[str] = None

    def message_text(self) -> Optional[str]:
        """First non-empty string among MESSAGE_FIELDS, or None."""
        for name in MESSAGE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str) and value:
                return value
        return None

    def sent_keys(self) -> List[str]:
        """Every top-level key the caller sent, known or not."""
        return sorted(self.model_fields_set | set(self.model_extra or {}))


# ── Analysis / Intelligence Models ──────────────────────────────

class ScamAnalysis(BaseModel):
    """Result of classifying a single message."""
    is_scam: bool = False
    confidence: float = 0.0
    indicators: List[str] = Field(default_factory=list)
    category: str = "unknown"


_FIELD_BY_TYPE = {
    IntelligenceType.BANK_ACCOUNT: "bank_accounts",
    IntelligenceType.UPI_ID: "upi_ids",
    IntelligenceType.PHISHING_URL: "phishing_urls",
    IntelligenceType.PHONE_NUMBER: "phone_numbers",
    IntelligenceType.EMAIL: "emails",
}


class ExtractedIntelligence(BaseModel):
    """Typed artifacts, each list free of duplicates and in first-seen order."""
    bank_accounts: List[str] = Field(default_factory=list)
    upi_ids: List[str] = Field(default_factory=list)
    phishing_urls: List[str] = Field(default_factory=list)
    phone_numbers: List[str] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)

    def items(self) -> Iterator[Tuple[IntelligenceType, str]]:
        for intel_type, field_name in _FIELD_BY_TYPE.items():
            for value in getattr(self, field_name):
                yield intel_type, value

    def count(self) -> int:
        return sum(len(getattr(self, name)) for name in _FIELD_BY_TYPE.values())

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[IntelligenceType, str]]) -> "ExtractedIntelligence":
        intel = cls()
        for intel_type, value in pairs:
            bucket = getattr(intel, _FIELD_BY_TYPE[IntelligenceType(intel_type)])
            if value not in bucket:
                bucket.append(value)
        return intel


# ── Response Models ─────────────────────────────────────────────

class HoneypotResponse(BaseModel):
    """Reply contract for POST /honeypot."""
    conversation_id: str
    scam_detected: bool
    agent_active: bool
    turn_count: int
    response_message: Optional[str] = None
    extracted_intelligence: ExtractedIntelligence = Field(default_factory=ExtractedIntelligence)


class MessageView(BaseModel):
    role: MessageRole
    content: str
    created_at: datetime


class ConversationSummary(BaseModel):
    conversation_id: str
    status: ConversationStatus
    scam_detected: bool
    agent_active: bool
    turn_count: int
    created_at: datetime
    intelligence_count: int = 0


class ConversationDetail(ConversationSummary):
    messages: List[MessageView] = Field(default_factory=list)
    extracted_intelligence: ExtractedIntelligence = Field(default_factory=ExtractedIntelligence)
