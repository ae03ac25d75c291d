import logging
import threading
import typing as T

from ciwatch.clients.base import BaseClient
from ciwatch.clients.dogstatsd import DogStatsDClient
from ciwatch.clients.http import DatadogHttpClient
from ciwatch.core.enums import ClientType
from ciwatch.core.exceptions import ConfigurationError
from ciwatch.metrics.counters import CounterStore

logger = logging.getLogger(__name__)


def _http_settings(api_url, api_key, host, port, log_intake_url):
    return (api_url, api_key, log_intake_url)


def _build_http(store, settings, enable_validations):
    api_url, api_key, log_intake_url = settings
    return DatadogHttpClient(
        api_url,
        api_key,
        log_intake_url=log_intake_url,
        store=store,
        enable_validations=enable_validations,
    )


def _dogstatsd_settings(api_url, api_key, host, port, log_intake_url):
    return (host, port)


def _build_dogstatsd(store, settings, enable_validations):
    host, port = settings
    return DogStatsDClient(
        host, port, store=store, enable_validations=enable_validations
    )


# client type -> (settings it depends on, builder)
CLIENT_BUILDERS: T.Dict[
    ClientType, T.Tuple[T.Callable[..., tuple], T.Callable[..., BaseClient]]
] = {
    ClientType.HTTP: (_http_settings, _build_http),
    ClientType.DOGSTATSD: (_dogstatsd_settings, _build_dogstatsd),
}


def parse_client_type(value: T.Union[ClientType, str]) -> ClientType:
    try:
        return ClientType(str(value).strip().upper())
    except ValueError:
        raise ConfigurationError(f"Unknown client type: {value}", "report_with")


class ClientFactory:
    """Holds the one active client.

    The installed client and the settings it was built from are kept in a
    single tuple, so readers pick up either the old or the new pair with a
    plain attribute read.  Only reconfiguration takes the lock."""

    def __init__(self, store: T.Optional[CounterStore] = None):
        self.store = store
        self._installed: T.Optional[T.Tuple[tuple, BaseClient]] = None
        self._lock = threading.Lock()

    def get_client(
        self,
        client_type: T.Optional[T.Union[ClientType, str]] = None,
        api_url: T.Optional[str] = None,
        api_key: T.Optional[str] = None,
        host: T.Optional[str] = None,
        port: T.Optional[int] = None,
        log_intake_url: T.Optional[str] = None,
        enable_validations: bool = True,
    ) -> T.Optional[BaseClient]:
        """Return the active client, replacing it if the settings changed.

        Without arguments this only reads the active client, which is None
        until the first successful configuration."""
        if client_type is None:
            installed = self._installed
            return installed[1] if installed else None

        client_type = parse_client_type(client_type)
        settings_for, build = CLIENT_BUILDERS[client_type]
        settings = settings_for(api_url, api_key, host, port, log_intake_url)
        key = (client_type,) + settings
        with self._lock:
            installed = self._installed
            if installed is not None and installed[0] == key:
                return installed[1]
            client = build(self.store, settings, enable_validations)
            self._installed = (key, client)

        logger.info(f"Reporting with {client!r}")
        if installed is not None:
            installed[1].close()
        return client

    def configure(self, config) -> BaseClient:
        """Install a client for a resolved GlobalConfiguration."""
        return self.get_client(
            config.report_with,
            config.target_api_url,
            config.api_key(),
            config.target_host,
            config.target_port,
            config.target_log_intake_url,
        )

    def reset(self):
        with self._lock:
            installed, self._installed = self._installed, None
        if installed is not None:
            installed[1].close()


default_factory = ClientFactory()


def get_client(*args, **kwargs) -> T.Optional[BaseClient]:
    return default_factory.get_client(*args, **kwargs)
