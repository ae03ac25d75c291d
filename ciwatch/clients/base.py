import logging
import typing as T
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field

from ciwatch.core.enums import ClientType
from ciwatch.events.models import Event, ServiceCheck
from ciwatch.metrics.counters import CounterStore, get_counter_store
from ciwatch.metrics.flush import FlushDriver, FlushResult
from ciwatch.utils.tags import TagMap, convert_tags_to_list

logger = logging.getLogger(__name__)


@dataclass
class CounterBatch:
    """Counters buffered during one flush cycle.

    ``failed`` is set when the buffered series are sent and rejected."""

    series: T.List[dict] = field(default_factory=list)
    failed: int = 0


class BaseClient(ABC):
    """Capabilities shared by every backend client.

    Counters are never sent from ``increment_counter``: they go to the
    bound CounterStore and leave the process in ``flush_counters``.
    Events, service checks and logs are sent straight away and report
    success as a bool; only bad configuration raises."""

    client_type: T.ClassVar[ClientType]

    def __init__(
        self, store: T.Optional[CounterStore] = None, enable_validations: bool = True
    ):
        self.store = store if store is not None else get_counter_store()
        if enable_validations:
            self.validate_configuration()

    @property
    @abstractmethod
    def settings(self) -> tuple:
        """Connection parameters; equal settings mean an equivalent client."""

    @abstractmethod
    def validate_configuration(self):
        """Raise ConfigurationError naming the first invalid setting."""

    @abstractmethod
    def validate(self) -> bool:
        """Check that the backend can be reached with these settings."""

    @abstractmethod
    def submit_counter(
        self, name: str, hostname: str, tags: T.Iterable[str], value: int
    ) -> bool:
        """Send one aggregated count."""

    @abstractmethod
    def send_event(self, event: Event) -> bool:
        pass

    @abstractmethod
    def send_service_check(self, check: ServiceCheck) -> bool:
        pass

    @abstractmethod
    def send_logs(self, payload: str) -> bool:
        pass

    def increment_counter(
        self, name: str, hostname: T.Optional[str], tags: T.Optional[TagMap] = None
    ):
        self.store.increment(name, hostname, convert_tags_to_list(tags))

    @contextmanager
    def batch(self) -> T.Iterator[CounterBatch]:
        yield CounterBatch()

    def flush_counters(self) -> FlushResult:
        return FlushDriver(self.store, lambda: self).flush()

    def close(self):
        pass

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.client_type}>"
