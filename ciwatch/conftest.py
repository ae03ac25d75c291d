import logging

from pytest import fixture

from ciwatch.clients.dogstatsd import DogStatsDClient
from ciwatch.clients.factory import ClientFactory, default_factory
from ciwatch.clients.http import DatadogHttpClient
from ciwatch.metrics.counters import CounterStore

API_URL = "https://api.datadoghq.com/api/"
API_KEY = "0123456789abcdef"


@fixture(autouse=True)
def restore_ciwatch_logger():
    """The CLI installs its own handler; undo that so caplog keeps working."""
    logger = logging.getLogger("ciwatch")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    try:
        yield
    finally:
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate


@fixture(autouse=True)
def reset_default_factory():
    try:
        yield
    finally:
        default_factory.reset()


@fixture
def store():
    return CounterStore()


@fixture
def factory(store):
    factory = ClientFactory(store)
    try:
        yield factory
    finally:
        factory.reset()


@fixture
def http_client(store):
    client = DatadogHttpClient(API_URL, API_KEY, store=store)
    try:
        yield client
    finally:
        client.close()


@fixture
def statsd_client(store):
    client = DogStatsDClient("localhost", 8125, store=store)
    try:
        yield client
    finally:
        client.close()


@fixture
def api_url():
    return API_URL


@fixture
def api_key():
    return API_KEY
