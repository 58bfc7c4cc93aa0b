"""
Intelligence extraction module.
Uses regex patterns to pull actionable artifacts out of a scammer message.
Covers: bank accounts, UPI IDs, phishing links, phone numbers and email addresses.

Every extractor is total: no match means an empty list, never an error.
Values are normalised (UPI IDs and emails lower-cased, phone separators
stripped) and deduplicated in first-seen order.
"""

import re
from typing import Iterable, List, Set, Tuple
from app.models import ExtractedIntelligence


# ── Known UPI handles ───────────────────────────────────────────

UPI_HANDLES = frozenset({
    'upi', 'ybl', 'okhdfcbank', 'okaxis', 'okicici', 'oksbi', 'paytm', 'apl',
    'ibl', 'axl', 'axisbank', 'sbi', 'hdfc', 'hdfcbank', 'icici', 'kotak',
    'ikwik', 'federal', 'indus', 'barodampay', 'mahb', 'cnrb', 'pnb',
    'unionbank', 'idbi', 'fbl', 'rbl', 'freecharge', 'jio', 'airtel',
    'postbank', 'abfspay', 'ratn', 'kvb', 'idfcbank', 'waaxis', 'wahdfcbank',
    'waicici', 'wasbi', 'jupiteraxis', 'slice', 'niyoicici',
})

# ── Regex Patterns ──────────────────────────────────────────────

# Bank accounts: maximal runs of 9-18 digits
BANK_ACCT_PATTERN = re.compile(r'(?<!\d)\d{9,18}(?!\d)')

# UPI IDs: handle@provider where provider is a known payment handle.
# The provider must end the token, so "a@sbi.co.in" stays an email.
UPI_PATTERN = re.compile(
    r'[a-zA-Z0-9._-]+@(?:'
    + '|'.join(sorted(UPI_HANDLES, key=len, reverse=True))
    + r')(?![a-zA-Z0-9_-]|\.[a-zA-Z0-9])',
    re.IGNORECASE,
)

# Phishing links: scheme up to whitespace or a closing bracket/quote
URL_PATTERN = re.compile(r'https?://[^\s<>"\'{}|\\^`\[\]()]+', re.IGNORECASE)

# Phone numbers: optional country code, 10 digits with at most one separator
PHONE_PATTERN = re.compile(r'(?<![\d+])(?:\+\d{1,3}[-\s]?)?(?:\d{10}|\d{5}[-\s]\d{5})(?!\d)')
PHONE_SEPARATORS = re.compile(r'[-\s]')

# Email addresses: standard email format
EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')


# ── Helper Functions ────────────────────────────────────────────

def _dedupe(values: Iterable[str]) -> List[str]:
    """Deduplicate preserving first occurrence."""
    seen: Set[str] = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _overlaps(span: Tuple[int, int], spans: List[Tuple[int, int]]) -> bool:
    return any(span[0] < end and start < span[1] for start, end in spans)


# ── Extractors ──────────────────────────────────────────────────

def extract_bank_accounts(text: str) -> List[str]:
    return _dedupe(BANK_ACCT_PATTERN.findall(text))


def extract_upi_ids(text: str) -> List[str]:
    """Extract UPI IDs (lower-cased) whose provider is a known payment handle."""
    return _dedupe(m.group(0).lower() for m in UPI_PATTERN.finditer(text))


def extract_urls(text: str) -> List[str]:
    """Extract http(s) links, original casing preserved."""
    urls = []
    for match in URL_PATTERN.finditer(text):
        url = match.group(0).rstrip('.,;:!?')
        if re.match(r'^https?://.', url, re.IGNORECASE):
            urls.append(url)
    return _dedupe(urls)


def extract_phone_numbers(text: str) -> List[str]:
    return _dedupe(PHONE_SEPARATORS.sub('', m.group(0)) for m in PHONE_PATTERN.finditer(text))


def extract_emails(text: str) -> List[str]:
    """Extract email addresses (lower-cased), skipping anything already
    reported as a UPI ID."""
    upi_spans = [m.span() for m in UPI_PATTERN.finditer(text)]
    emails = []
    for match in EMAIL_PATTERN.finditer(text):
        if _overlaps(match.span(), upi_spans):
            continue
        emails.append(match.group(0).lower())
    return _dedupe(emails)


def extract_all_intelligence(text: str) -> ExtractedIntelligence:
    """Run every extractor over the same text."""
    text = text or ""
    return ExtractedIntelligence(
        bank_accounts=extract_bank_accounts(text),
        upi_ids=extract_upi_ids(text),
        phishing_urls=extract_urls(text),
        phone_numbers=extract_phone_numbers(text),
        emails=extract_emails(text),
    )
