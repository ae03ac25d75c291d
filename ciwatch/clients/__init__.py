from ciwatch.clients.base import BaseClient, CounterBatch
from ciwatch.clients.dogstatsd import DogStatsDClient
from ciwatch.clients.factory import ClientFactory, default_factory, get_client
from ciwatch.clients.http import DatadogHttpClient

__all__ = (
    "BaseClient",
    "ClientFactory",
    "CounterBatch",
    "DatadogHttpClient",
    "DogStatsDClient",
    "default_factory",
    "get_client",
)
