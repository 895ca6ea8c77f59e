"""
HypeMeter — In-Memory TTL Cache
─────────────────────────────────
One cache per source, created at app startup and owned by the service.
Entries are (value, timestamp); an entry is fresh while its age is
strictly below the TTL and is dropped by the lookup that finds it stale.
There is no background sweep. Capacity is bounded with LRU eviction.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

log = logging.getLogger("hm.cache")


class TTLCache:

    def __init__(self, ttl: float, max_entries: int = 2048,
                 clock: Callable[[], float] = time.monotonic, name: str = "cache"):
        self.ttl         = float(ttl)
        self.max_entries = max_entries
        self.name        = name
        self._clock      = clock
        self._data: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, ts = entry
        if self._clock() - ts >= self.ttl:
            del self._data[key]
            return None
        self._data.move_to_end(key)
        log.debug(f"{self.name}: hit {key}")
        return value

    def set(self, key: str, value: Any):
        self._data[key] = (value, self._clock())
        self._data.move_to_end(key)
        while self.max_entries and len(self._data) > self.max_entries:
            evicted, _ = self._data.popitem(last=False)
            log.debug(f"{self.name}: evicted {evicted}")

    def clear(self):
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
