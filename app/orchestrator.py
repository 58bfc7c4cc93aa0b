"""
Conversation orchestrator — per-request control flow for the honeypot.

For each inbound message:
  1. get-or-create the conversation
  2. persist the inbound message
  3. classify, only while the conversation is not yet flagged (sticky verdict)
  4. extract intelligence and set-union it into the conversation
  5. if the agent is active, generate and persist a persona reply
  6. count the turn
  7. assemble the response from the cumulative state

Nothing here holds mutable state between requests; all shared state lives
behind the ConversationStore.
"""

import logging
import uuid
from typing import Callable, Optional

from app.agent import ReplyGenerator
from app.errors import UpstreamError
from app.intel_extractor import extract_all_intelligence
from app.models import ExtractedIntelligence, HoneypotResponse, MessageRole, ScamAnalysis
from app.persona import build_prompt
from app.scam_classifier import classify
from app.store import ConversationStore, Message

logger = logging.getLogger(__name__)


class ConversationOrchestrator:
    def __init__(
        self,
        store: ConversationStore,
        generator: ReplyGenerator,
        classifier: Callable[[str], ScamAnalysis] = classify,
        extractor: Callable[[str], ExtractedIntelligence] = extract_all_intelligence,
    ):
        self.store = store
        self.generator = generator
        self.classifier = classifier
        self.extractor = extractor

    def handle_message(
        self,
        message_text: str,
        conversation_id: Optional[str] = None,
        api_key_hash: Optional[str] = None,
    ) -> HoneypotResponse:
        conv_id = conversation_id or str(uuid.uuid4())
        tag = conv_id[:8]

        # ── 1. Resolve conversation ────────────────────────────
        conversation, created = self.store.get_or_create_conversation(conv_id, api_key_hash)
        if created:
            logger.info(f"[{tag}] New conversation")

        # ── 2. Inbound message is durable before anything else ──
        inbound = self.store.append_message(conv_id, MessageRole.SCAMMER, message_text)

        # ── 3. Classify until the first positive verdict ───────
        scam_detected = conversation.scam_detected
        agent_active = conversation.agent_active
        if not scam_detected:
            analysis = self.classifier(message_text)
            if analysis.is_scam:
                if self.store.mark_scam_detected(conv_id):
                    logger.info(
                        f"[{tag}] SCAM CONFIRMED category={analysis.category} "
                        f"confidence={analysis.confidence:.2f} indicators={len(analysis.indicators)}"
                    )
                scam_detected = agent_active = True

        # ── 4. Intelligence, set union ─────────────────────────
        intel = self.extractor(message_text)
        added = self.store.upsert_intelligence(conv_id, intel.items())
        if added:
            logger.info(f"[{tag}] Stored {added} new intelligence item(s)")

        # ── 5. Persona reply ───────────────────────────────────
        reply = None
        if scam_detected and agent_active:
            reply = self._generate_reply(conv_id, inbound, message_text)

        # ── 6. Count the turn ──────────────────────────────────
        turn_count = self.store.increment_turn(conv_id)

        # ── 7. Assemble from cumulative state ──────────────────
        current = self.store.get_conversation(conv_id) or conversation
        records = self.store.list_intelligence(conv_id)
        cumulative = ExtractedIntelligence.from_pairs(
            (r.intelligence_type, r.value) for r in records
        )

        logger.info(
            f"[{tag}] Turn {turn_count} done scam={current.scam_detected or scam_detected} "
            f"reply={'yes' if reply else 'no'} intel={cumulative.count()}"
        )

        return HoneypotResponse(
            conversation_id=conv_id,
            scam_detected=current.scam_detected or scam_detected,
            agent_active=current.agent_active or agent_active,
            turn_count=turn_count,
            response_message=reply,
            extracted_intelligence=cumulative,
        )

    def _generate_reply(self, conv_id: str, inbound: Message, message_text: str) -> Optional[str]:
        """Build the prompt from stored history and ask the generator.
        Returns None when the generation service is unavailable."""
        history = [m for m in self.store.list_messages(conv_id) if m.seq != inbound.seq]
        turns = build_prompt(history, message_text)

        try:
            reply = self.generator.generate(turns)
        except UpstreamError as e:
            logger.warning(f"[{conv_id[:8]}] Reply generation unavailable: {e.details or e.error}")
            return None

        self.store.append_message(conv_id, MessageRole.AGENT, reply)
        return reply
