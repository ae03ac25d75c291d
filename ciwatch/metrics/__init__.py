""" ciwatch aggregates build counters in memory between flushes.

Build listeners call ``increment`` many times per second from their own
threads.  Nothing is sent on that path: counts pile up in a
``CounterStore`` keyed by metric name, host and tag set, and a single
flusher (driven by the CI host's scheduler) drains the store and submits
one count per key through the active client.

Every increment is attributed to exactly one flush: the drain swaps the
tables out while holding every stripe lock, so an increment lands either
before the swap (and is drained) or after it (and waits for the next
cycle).
"""

from ciwatch.metrics.counters import CounterKey, CounterStore, get_counter_store
from ciwatch.metrics.flush import FlushDriver, FlushResult

__all__ = (
    "CounterKey",
    "CounterStore",
    "FlushDriver",
    "FlushResult",
    "get_counter_store",
)
