# dealer_monitor/shared/services/cache.py
import time
from typing import Any, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Simple in-memory cache with per-entry TTL."""

    def __init__(self, ttl: float) -> None:
        self._store: Dict[Hashable, Tuple[float, Any]] = {}
        self._ttl = ttl

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, key: Hashable) -> Optional[Any]:
        if not self.enabled:
            return None
        entry = self._store.get(key)
        if entry is None:
            return None
        ts, value = entry
        if time.monotonic() - ts > self._ttl:
            del self._store[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        if not self.enabled:
            return
        now = time.monotonic()
        expired = [k for k, (ts, _) in self._store.items() if now - ts > self._ttl]
        for k in expired:
            del self._store[k]
        self._store[key] = (now, value)

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()
