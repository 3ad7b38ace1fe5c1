"""In-memory daily usage accounting per chat session."""
import threading
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Optional, Set

from errors import QuotaExceededError


@dataclass
class UsageRecord:
    reset_date: date
    message_count: int = 0
    token_count: int = 0
    last_request_at: Optional[float] = None
    addresses: Set[str] = field(default_factory=set)
    touched_at: float = 0.0


class UsageTracker:
    def __init__(
        self,
        daily_limit: int = 50,
        ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
        today: Callable[[], date] = date.today,
    ):
        self.daily_limit = daily_limit
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._today = today
        self._lock = threading.Lock()
        self._records: Dict[str, UsageRecord] = {}

    def _get(self, session_id: str) -> UsageRecord:
        rec = self._records.get(session_id)
        if rec is None:
            rec = self._records[session_id] = UsageRecord(reset_date=self._today())
        rec.touched_at = self._clock()
        return rec

    def check_quota(self, session_id: str, address: Optional[str] = None) -> UsageRecord:
        """Reserve one message of today's quota.

        The slot is counted immediately so concurrent requests for the same
        session cannot all slip under the limit. Give it back with
        ``release`` if the request fails afterwards.
        """
        with self._lock:
            rec = self._get(session_id)
            if address:
                rec.addresses.add(address)
            if rec.message_count >= self.daily_limit:
                raise QuotaExceededError(limit=self.daily_limit, used=rec.message_count)
            rec.message_count += 1
            return rec

    def release(self, session_id: str):
        with self._lock:
            rec = self._records.get(session_id)
            # a sweep may have zeroed the counter since the slot was reserved
            if rec is not None and rec.message_count > 0:
                rec.message_count -= 1

    def record(self, session_id: str, tokens: int = 0):
        with self._lock:
            rec = self._get(session_id)
            rec.token_count += max(tokens or 0, 0)
            rec.last_request_at = rec.touched_at

    def sweep(self, today: Optional[date] = None, now: Optional[float] = None) -> int:
        """Zero stale daily counters and drop idle records. Returns the number reset."""
        today = today or self._today()
        now = self._clock() if now is None else now
        reset = 0
        with self._lock:
            for sid in list(self._records):
                rec = self._records[sid]
                if now - rec.touched_at > self.ttl_seconds:
                    del self._records[sid]
                    continue
                if rec.reset_date != today:
                    rec.message_count = 0
                    rec.reset_date = today
                    reset += 1
        return reset

    def snapshot(self, session_id: str) -> Optional[dict]:
        with self._lock:
            rec = self._records.get(session_id)
            if rec is None:
                return None
            return {
                "session_id": session_id,
                "message_count": rec.message_count,
                "token_count": rec.token_count,
                "daily_limit": self.daily_limit,
                "remaining": max(self.daily_limit - rec.message_count, 0),
                "last_request_at": rec.last_request_at,
                "reset_date": rec.reset_date.isoformat(),
                "addresses": len(rec.addresses),
            }

    def __len__(self) -> int:
        return len(self._records)
