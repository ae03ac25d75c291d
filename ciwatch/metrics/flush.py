import logging
import typing as T
from dataclasses import dataclass

from ciwatch.metrics.counters import CounterStore

logger = logging.getLogger(__name__)


@dataclass
class FlushResult:
    submitted: int = 0
    failed: int = 0


class FlushDriver:
    """Drain a CounterStore and submit one count per key to the active client.

    ``flush`` is meant to be called by a single scheduler thread owned by
    the CI host.  ``client_provider`` is called once per cycle, so a client
    swapped in by reconfiguration is picked up on the next flush."""

    def __init__(self, store: CounterStore, client_provider: T.Callable):
        self.store = store
        self.client_provider = client_provider

    def flush(self) -> FlushResult:
        result = FlushResult()
        client = self.client_provider()
        if client is None:
            # not configured yet; counts stay in the store for the next cycle
            return result

        counters = self.store.get_and_reset()
        pending = [(key, count) for key, count in counters.items() if count > 0]
        if not pending:
            return result

        with client.batch() as batch:
            for key, count in pending:
                try:
                    sent = client.submit_counter(
                        key.metric_name, key.hostname, key.tags, count
                    )
                except Exception:
                    logger.exception(
                        f"Failed to submit counter {key.metric_name} ({count})"
                    )
                    sent = False
                if sent:
                    result.submitted += 1
                else:
                    result.failed += 1

        # counters buffered by the batch but rejected when it was sent
        result.submitted -= batch.failed
        result.failed += batch.failed

        if result.failed:
            logger.warning(
                f"Flushed {result.submitted} counters, {result.failed} could not be sent"
            )
        else:
            logger.debug(f"Flushed {result.submitted} counters")
        return result
