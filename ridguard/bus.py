# A tiny pub/sub event bus to keep layers decoupled.
import logging
import threading
from typing import Callable, Dict, List

logger = logging.getLogger("ridguard.bus")


class EventBus:
    def __init__(self) -> None:
        self._subs: Dict[str, List[Callable]] = {}
        self._lock = threading.Lock()

    def on(self, topic: str, fn: Callable):
        with self._lock:
            self._subs.setdefault(topic, []).append(fn)

    def emit(self, topic: str, *args, **kwargs):
        with self._lock:
            subs = list(self._subs.get(topic, []))
        for fn in subs:
            try:
                fn(*args, **kwargs)
            except Exception:
                # a broken observer must not break ingest
                logger.exception("Subscriber for %r failed", topic)
