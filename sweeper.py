import logging
import threading

logger = logging.getLogger("dumbgpt.sweeper")


class Sweeper:
    """Background thread that resets daily usage and evicts idle state."""

    def __init__(self, usage, conversations, limiters=(), interval: float = 3600):
        self.usage = usage
        self.conversations = conversations
        self.limiters = list(limiters)
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    def run_once(self) -> dict:
        stats = {
            "usage_reset": self.usage.sweep(),
            "sessions_evicted": self.conversations.evict_idle(),
            "limiter_keys_purged": sum(limiter.purge() for limiter in self.limiters),
        }
        logger.info("Sweep finished: %s", stats)
        return stats

    def _loop(self):
        while not self._stop.wait(self.interval):
            try:
                self.run_once()
            except Exception:
                # keep the thread alive for the next pass
                logger.exception("Sweep failed")

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="usage-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
