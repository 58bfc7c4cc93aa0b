"""
API key bookkeeping. Keys are stored only as SHA-256 hex digests.
"""

import hashlib
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


@dataclass
class ApiKeyRecord:
    id: str
    key_hash: str
    is_active: bool = True
    requests_count: int = 0
    last_used_at: Optional[datetime] = None


class InMemoryApiKeyStore:
    """Thread-safe key registry keyed by hash."""

    def __init__(self, raw_keys: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._by_hash: Dict[str, ApiKeyRecord] = {}
        for raw in raw_keys:
            self.add_key(raw)

    def add_key(self, raw_key: str) -> ApiKeyRecord:
        key_hash = hash_api_key(raw_key)
        with self._lock:
            record = self._by_hash.get(key_hash)
            if record is None:
                record = ApiKeyRecord(id=str(uuid.uuid4()), key_hash=key_hash)
                self._by_hash[key_hash] = record
            return replace(record)

    def lookup_active_key(self, key_hash: str) -> Optional[ApiKeyRecord]:
        with self._lock:
            record = self._by_hash.get(key_hash)
            if record is None or not record.is_active:
                return None
            return replace(record)

    def record_usage(self, key_id: str) -> None:
        """Increment the usage counter and stamp last use."""
        with self._lock:
            for record in self._by_hash.values():
                if record.id == key_id:
                    record.requests_count += 1
                    record.last_used_at = datetime.now(timezone.utc)
                    return

    def deactivate(self, key_id: str) -> bool:
        with self._lock:
            for record in self._by_hash.values():
                if record.id == key_id:
                    record.is_active = False
                    return True
        return False
