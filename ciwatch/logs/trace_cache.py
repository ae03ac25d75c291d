import threading
import time
import typing as T
from collections import OrderedDict
from dataclasses import dataclass

DEFAULT_MAXSIZE = 1000
DEFAULT_TTL = 3600


@dataclass(frozen=True)
class AugmentedSpan:
    trace_id: str
    span_id: str


class TraceCache:
    """Build id -> span of the trace that build is reporting.

    Bounded in both directions: entries expire ``ttl`` seconds after they
    were stored, and the least recently used entry is evicted once
    ``maxsize`` is reached."""

    def __init__(
        self,
        maxsize: int = DEFAULT_MAXSIZE,
        ttl: float = DEFAULT_TTL,
        clock: T.Callable[[], float] = time.monotonic,
    ):
        self.maxsize = maxsize
        self.ttl = ttl
        self._clock = clock
        self._entries: "OrderedDict[str, T.Tuple[float, AugmentedSpan]]" = OrderedDict()
        self._lock = threading.Lock()

    def put(self, build_id: str, span: AugmentedSpan):
        with self._lock:
            self._entries[build_id] = (self._clock() + self.ttl, span)
            self._entries.move_to_end(build_id)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)

    def get(self, build_id: T.Optional[str]) -> T.Optional[AugmentedSpan]:
        if build_id is None:
            return None
        with self._lock:
            entry = self._entries.get(build_id)
            if entry is None:
                return None
            expires_at, span = entry
            if expires_at <= self._clock():
                del self._entries[build_id]
                return None
            self._entries.move_to_end(build_id)
            return span

    def remove(self, build_id: str):
        with self._lock:
            self._entries.pop(build_id, None)

    def __len__(self):
        with self._lock:
            return len(self._entries)


trace_cache = TraceCache()
