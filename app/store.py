"""
Conversation store: persistence for conversations, messages and intelligence.

The orchestrator only talks to the ConversationStore interface. The in-memory
implementation keeps every mutation inside one lock so that get-or-create,
the scam-flag transition, turn increments and intelligence upserts are atomic
targeted updates rather than read-modify-write on a stale snapshot.
"""

import itertools
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple

from app.errors import PersistenceError
from app.models import ConversationStatus, IntelligenceType, MessageRole


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Conversation:
    conversation_id: str
    api_key_hash: Optional[str] = None
    scam_detected: bool = False
    agent_active: bool = False
    turn_count: int = 0
    status: ConversationStatus = ConversationStatus.ACTIVE
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class Message:
    conversation_id: str
    role: MessageRole
    content: str
    created_at: datetime
    seq: int


@dataclass(frozen=True)
class IntelligenceRecord:
    conversation_id: str
    intelligence_type: IntelligenceType
    value: str
    created_at: datetime


class ConversationStore(Protocol):
    def get_or_create_conversation(
        self, conversation_id: str, api_key_hash: Optional[str] = None
    ) -> Tuple[Conversation, bool]: ...

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]: ...

    def list_conversations(self) -> List[Conversation]: ...

    def append_message(self, conversation_id: str, role: MessageRole, content: str) -> Message: ...

    def list_messages(self, conversation_id: str) -> List[Message]: ...

    def mark_scam_detected(self, conversation_id: str) -> bool: ...

    def upsert_intelligence(
        self, conversation_id: str, items: Iterable[Tuple[IntelligenceType, str]]
    ) -> int: ...

    def list_intelligence(self, conversation_id: str) -> List[IntelligenceRecord]: ...

    def increment_turn(self, conversation_id: str) -> int: ...


class InMemoryConversationStore:
    """Thread-safe in-process store. Returned records are copies."""

    def __init__(self):
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._intelligence: Dict[str, List[IntelligenceRecord]] = {}
        self._intel_keys: Set[Tuple[str, IntelligenceType, str]] = set()

    def _require(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise PersistenceError(details=f"Unknown conversation {conversation_id!r}")
        return conversation

    # ── Conversations ───────────────────────────────────────────

    def get_or_create_conversation(
        self, conversation_id: str, api_key_hash: Optional[str] = None
    ) -> Tuple[Conversation, bool]:
        """Return (conversation, created). Concurrent first sightings converge
        on a single record."""
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            created = conversation is None
            if created:
                conversation = Conversation(conversation_id=conversation_id, api_key_hash=api_key_hash)
                self._conversations[conversation_id] = conversation
                self._messages[conversation_id] = []
                self._intelligence[conversation_id] = []
            return replace(conversation), created

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            return replace(conversation) if conversation else None

    def list_conversations(self) -> List[Conversation]:
        """Newest first."""
        with self._lock:
            conversations = [replace(c) for c in self._conversations.values()]
        return sorted(conversations, key=lambda c: c.created_at, reverse=True)

    def mark_scam_detected(self, conversation_id: str) -> bool:
        """Set scam_detected and agent_active together. True only for the call
        that performed the transition."""
        with self._lock:
            conversation = self._require(conversation_id)
            if conversation.scam_detected:
                return False
            conversation.scam_detected = True
            conversation.agent_active = True
            return True

    def increment_turn(self, conversation_id: str) -> int:
        with self._lock:
            conversation = self._require(conversation_id)
            conversation.turn_count += 1
            return conversation.turn_count

    # ── Messages ────────────────────────────────────────────────

    def append_message(self, conversation_id: str, role: MessageRole, content: str) -> Message:
        with self._lock:
            self._require(conversation_id)
            message = Message(
                conversation_id=conversation_id,
                role=MessageRole(role),
                content=content,
                created_at=_now(),
                seq=next(self._seq),
            )
            self._messages[conversation_id].append(message)
            return message

    def list_messages(self, conversation_id: str) -> List[Message]:
        """Messages ordered by creation time (sequence breaks clock ties)."""
        with self._lock:
            self._require(conversation_id)
            messages = list(self._messages[conversation_id])
        return sorted(messages, key=lambda m: (m.created_at, m.seq))

    # ── Intelligence ────────────────────────────────────────────

    def upsert_intelligence(
        self, conversation_id: str, items: Iterable[Tuple[IntelligenceType, str]]
    ) -> int:
        """Set-union the items into the conversation's intelligence.
        Returns how many were new."""
        added = 0
        with self._lock:
            self._require(conversation_id)
            for intel_type, value in items:
                key = (conversation_id, IntelligenceType(intel_type), value)
                if key in self._intel_keys:
                    continue
                self._intel_keys.add(key)
                self._intelligence[conversation_id].append(
                    IntelligenceRecord(
                        conversation_id=conversation_id,
                        intelligence_type=key[1],
                        value=value,
                        created_at=_now(),
                    )
                )
                added += 1
        return added

    def list_intelligence(self, conversation_id: str) -> List[IntelligenceRecord]:
        with self._lock:
            self._require(conversation_id)
            return list(self._intelligence[conversation_id])
