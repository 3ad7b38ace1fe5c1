import threading
import time
from typing import Callable, Dict, List, Optional

# In-memory conversation store, one window per session.
# session_id -> [system message, ...most recent messages]
# message: {"role": "user"/"assistant"/"system", "content": "..."}


class _Conversation:
    __slots__ = ("messages", "touched_at")

    def __init__(self, system_prompt: str, now: float):
        self.messages: List[dict] = [{"role": "system", "content": system_prompt}]
        self.touched_at = now


class ConversationManager:
    def __init__(
        self,
        system_prompt: str,
        max_history: int = 6,
        ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.system_prompt = system_prompt
        self.max_history = max_history
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self.sessions: Dict[str, _Conversation] = {}

    def _get(self, session_id: str) -> _Conversation:
        now = self._clock()
        conv = self.sessions.get(session_id)
        if conv is None:
            conv = self.sessions[session_id] = _Conversation(self.system_prompt, now)
        conv.touched_at = now
        return conv

    def get_or_create(self, session_id: str) -> List[dict]:
        with self._lock:
            return [dict(m) for m in self._get(session_id).messages]

    def append(self, session_id: str, role: str, content: str) -> List[dict]:
        """Add a message, seeding the session like ``get_or_create`` if it is new."""
        with self._lock:
            conv = self._get(session_id)
            conv.messages.append({"role": role, "content": content})
            # system message stays pinned at index 0
            overflow = len(conv.messages) - 1 - self.max_history
            if overflow > 0:
                del conv.messages[1:1 + overflow]
            return [dict(m) for m in conv.messages]

    def get_history(self, session_id: str) -> List[dict]:
        with self._lock:
            conv = self.sessions.get(session_id)
            return [dict(m) for m in conv.messages] if conv else []

    def reset(self, session_id: str) -> bool:
        with self._lock:
            return self.sessions.pop(session_id, None) is not None

    def evict_idle(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        with self._lock:
            stale = [sid for sid, conv in self.sessions.items() if now - conv.touched_at > self.ttl_seconds]
            for sid in stale:
                del self.sessions[sid]
        return len(stale)

    def __len__(self) -> int:
        return len(self.sessions)
