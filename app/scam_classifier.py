"""
Scam classifier — rule-based scoring of a single inbound message.

Keyword phrases are matched case-insensitively as substrings, one point per
phrase. Structural signals add weight on top: links (2 each), a UPI-style
handle (3, once) and long digit runs (2 each). Confidence is the score over
ten, capped at 1.0.
"""

import re
from types import MappingProxyType
from typing import Dict, List
from app.models import ScamAnalysis


# ── Indicator catalogue (category → phrases, in priority order) ──

SCAM_INDICATORS = MappingProxyType({
    "urgent_payment": (
        "urgent", "immediately", "right now", "asap", "hurry", "quickly",
        "limited time", "expires today", "last chance", "act fast",
    ),
    "lottery_prize": (
        "congratulations", "winner", "won", "lottery", "prize", "jackpot",
        "selected", "lucky", "reward", "claim your",
    ),
    "kyc_verification": (
        "kyc", "verify", "verification", "update your account", "confirm identity",
        "account suspended", "account blocked", "reactivate", "security update",
    ),
    "financial_request": (
        "transfer", "bank account", "upi", "gpay", "phonepe", "paytm",
        "send money", "payment", "deposit", "wire transfer", "bitcoin", "crypto",
    ),
    "impersonation": (
        "government", "tax department", "police", "customs", "bank manager",
        "rbi", "sbi", "hdfc", "icici", "income tax", "cbi", "ed",
    ),
    "threat_language": (
        "arrest", "legal action", "case filed", "warrant", "fine", "penalty",
        "jail", "court", "summon", "investigation", "freeze account",
    ),
})

URL_SIGNAL = re.compile(r'https?://\S+|bit\.ly|tinyurl|short\.link', re.IGNORECASE)
# local-part@domain; a handle is a domain without a dotted suffix (name@paytm)
HANDLE_SIGNAL = re.compile(r'[a-zA-Z0-9._-]+@([a-zA-Z0-9-]+)((?:\.[a-zA-Z]{2,})*)')
DIGIT_RUN_SIGNAL = re.compile(r'(?<!\d)\d{9,18}(?!\d)')

URL_WEIGHT = 2
HANDLE_BONUS = 3
DIGIT_RUN_WEIGHT = 2

SCAM_CONFIDENCE_THRESHOLD = 0.2
MIN_INDICATORS = 2


def classify(text: str) -> ScamAnalysis:
    """Score a message against the indicator catalogue and structural signals."""
    lowered = (text or "").lower()
    indicators: List[str] = []
    category_scores: Dict[str, int] = {}
    total = 0

    for category, phrases in SCAM_INDICATORS.items():
        hits = 0
        for phrase in phrases:
            if phrase in lowered:
                indicators.append(f"{category}: {phrase}")
                hits += 1
        category_scores[category] = hits
        total += hits

    urls = URL_SIGNAL.findall(text or "")
    if urls:
        indicators.append(f"suspicious_urls: {len(urls)} found")
        total += len(urls) * URL_WEIGHT

    if any(not suffix for _, suffix in HANDLE_SIGNAL.findall(text or "")):
        indicators.append("upi_id: payment handle found")
        total += HANDLE_BONUS

    digit_runs = DIGIT_RUN_SIGNAL.findall(text or "")
    if digit_runs:
        indicators.append(f"bank_account: {len(digit_runs)} potential account numbers")
        total += len(digit_runs) * DIGIT_RUN_WEIGHT

    confidence = min(total / 10, 1.0)

    # max() keeps the first category on ties, i.e. catalogue order wins
    category = "unknown"
    best = max(category_scores, key=category_scores.get)
    if category_scores[best] > 0:
        category = best

    return ScamAnalysis(
        is_scam=confidence > SCAM_CONFIDENCE_THRESHOLD or len(indicators) >= MIN_INDICATORS,
        confidence=confidence,
        indicators=indicators,
        category=category,
    )
