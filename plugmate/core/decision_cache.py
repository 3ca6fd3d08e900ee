"""In-memory TTL cache for planner decisions."""

import hashlib
import threading
import time
from typing import Dict, Optional, Tuple

from ..constants import DEFAULT_DECISION_CACHE_TTL
from ..llm.client import AskOptions
from ..llm.decision import DecisionResult

KEY_SEPARATOR = "\n---\n"


def decision_cache_key(prompt: str, plugin_catalog: str, tool_catalog: str,
                       options: Optional[AskOptions] = None, env_context: str = "") -> str:
    """sha256 over the request parts.

    Surrounding whitespace is ignored everywhere. Provider, model and base URL
    are also compared case-insensitively and without a trailing slash.
    """
    options = options or AskOptions()
    parts = [
        prompt.strip(),
        plugin_catalog.strip(),
        tool_catalog.strip(),
        options.provider.strip().lower(),
        options.model.strip().lower(),
        options.base_url.strip().rstrip("/").lower(),
        env_context.strip(),
    ]
    return hashlib.sha256(KEY_SEPARATOR.join(parts).encode("utf-8")).hexdigest()


class DecisionCache:
    """Decisions keyed by request; entries older than ``ttl`` seconds are dropped on read."""

    def __init__(self, ttl: float = DEFAULT_DECISION_CACHE_TTL):
        self.ttl = ttl
        self._items: Dict[str, Tuple[float, DecisionResult]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, now: Optional[float] = None) -> Optional[DecisionResult]:
        now = time.monotonic() if now is None else now
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                return None
            inserted_at, value = entry
            if now - inserted_at > self.ttl:
                del self._items[key]
                return None
            return value

    def set(self, key: str, value: DecisionResult, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._items[key] = (now, value)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def create_decision_cache(ttl: float = DEFAULT_DECISION_CACHE_TTL) -> DecisionCache:
    """Create a decision cache with the given TTL in seconds."""
    return DecisionCache(ttl)
