import threading
import typing as T
from contextlib import ExitStack
from dataclasses import dataclass

DEFAULT_STRIPES = 16


@dataclass(frozen=True)
class CounterKey:
    """Identity of one aggregated counter.

    Tags are held as a frozenset so two keys built from the same tags in a
    different order are equal and hash alike."""

    metric_name: str
    hostname: str
    tags: T.FrozenSet[str]

    def __init__(self, metric_name: str, hostname: T.Optional[str], tags=()):
        object.__setattr__(self, "metric_name", metric_name)
        object.__setattr__(self, "hostname", hostname or "")
        object.__setattr__(self, "tags", frozenset(tags or ()))


class CounterStore:
    """Concurrent table of ``CounterKey -> count``.

    The table is split into lock stripes.  A key always maps to the same
    stripe, and ``increment`` only holds that stripe's lock while it
    updates one entry.  ``get_and_reset`` takes every stripe lock, in
    order, swaps each stripe for an empty dict and then merges the old
    stripes outside the locks.
    """

    def __init__(self, stripes: int = DEFAULT_STRIPES):
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        self._locks = [threading.Lock() for _ in range(stripes)]
        self._tables: T.List[T.Dict[CounterKey, int]] = [{} for _ in range(stripes)]

    def _index(self, key: CounterKey) -> int:
        return hash(key) % len(self._locks)

    def increment(
        self,
        metric_name: str,
        hostname: T.Optional[str],
        tags: T.Iterable[str] = (),
        value: int = 1,
    ):
        key = CounterKey(metric_name, hostname, tags)
        index = self._index(key)
        with self._locks[index]:
            # read the stripe under its lock; get_and_reset may have swapped it
            table = self._tables[index]
            table[key] = table.get(key, 0) + value

    def get_and_reset(self) -> T.Dict[CounterKey, int]:
        """Return every counter accumulated so far and start a new window."""
        with ExitStack() as stack:
            for lock in self._locks:
                stack.enter_context(lock)
            drained = self._tables
            self._tables = [{} for _ in drained]

        snapshot: T.Dict[CounterKey, int] = {}
        for table in drained:
            snapshot.update(table)
        return snapshot

    def __len__(self):
        with ExitStack() as stack:
            for lock in self._locks:
                stack.enter_context(lock)
            return sum(len(table) for table in self._tables)


_store: T.Optional[CounterStore] = None
_store_lock = threading.Lock()


def get_counter_store() -> CounterStore:
    """The process-wide store, created on first use."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = CounterStore()
    return _store
