import logging
import threading
import time
import typing as T
from contextlib import contextmanager
from urllib.parse import urlparse

import requests

from ciwatch.clients.base import BaseClient, CounterBatch
from ciwatch.core.enums import ClientType
from ciwatch.core.exceptions import CIWatchException, ConfigurationError, TransportError
from ciwatch.events.models import Event, ServiceCheck
from ciwatch.utils.http import safe_json_from_response

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.datadoghq.com/api/"
DEFAULT_LOG_INTAKE_URL = "https://http-intake.logs.datadoghq.com/v1/input/"
DEFAULT_TIMEOUT = 10
SERIES_CHUNK_SIZE = 500

TARGET_URL_ERROR = "Datadog Target URL is not set properly"
API_KEY_ERROR = "Datadog API Key is not set properly"


class DatadogHttpClient(BaseClient):
    """Reports to the Datadog HTTP API.

    Counters submitted inside ``batch()`` are buffered and posted as one
    series payload (split in chunks of SERIES_CHUNK_SIZE) when the batch
    closes.  Metrics, events and checks authenticate with the ``api_key``
    query parameter, logs with the ``DD-API-KEY`` header.
    """

    client_type = ClientType.HTTP

    def __init__(
        self,
        api_url: T.Optional[str],
        api_key: T.Optional[str],
        log_intake_url: T.Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.log_intake_url = log_intake_url or DEFAULT_LOG_INTAKE_URL
        self.timeout = timeout
        self.session = requests.Session()
        self._local = threading.local()
        super().__init__(**kwargs)

    @property
    def settings(self) -> tuple:
        return (self.api_url, self.api_key, self.log_intake_url)

    def validate_configuration(self):
        if not self.api_url or not self.api_url.strip():
            raise ConfigurationError(TARGET_URL_ERROR, "target_api_url")
        if urlparse(self.api_url.strip()).scheme not in ("http", "https"):
            raise ConfigurationError(TARGET_URL_ERROR, "target_api_url")
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError(API_KEY_ERROR, "target_api_key")

    def validate(self) -> bool:
        self.validate_configuration()
        try:
            response = self._request(
                "GET", self._url("v1/validate"), params={"api_key": self.api_key}
            )
            result = safe_json_from_response(response)
        except CIWatchException as e:
            logger.warning(f"API key validation failed: {e}")
            return False
        if not isinstance(result, dict):
            logger.warning(f"Unexpected API key validation reply: {result!r}")
            return False
        return bool(result.get("valid"))

    def submit_counter(self, name, hostname, tags, value) -> bool:
        series = {
            "metric": name,
            "points": [[int(time.time()), value]],
            "type": "count",
            "tags": sorted(tags or ()),
        }
        if hostname:
            series["host"] = hostname

        batch = getattr(self._local, "batch", None)
        if batch is not None:
            batch.series.append(series)
            return True
        return self._post("v1/series", {"series": [series]})

    @contextmanager
    def batch(self) -> T.Iterator[CounterBatch]:
        batch = CounterBatch()
        self._local.batch = batch
        try:
            yield batch
        finally:
            self._local.batch = None
            for start in range(0, len(batch.series), SERIES_CHUNK_SIZE):
                chunk = batch.series[start : start + SERIES_CHUNK_SIZE]
                if not self._post("v1/series", {"series": chunk}):
                    batch.failed += len(chunk)

    def send_event(self, event: Event) -> bool:
        return self._post("v1/events", event.to_payload())

    def send_service_check(self, check: ServiceCheck) -> bool:
        return self._post("v1/check_run", check.to_payload())

    def send_logs(self, payload: str) -> bool:
        try:
            self._request(
                "POST",
                self.log_intake_url,
                data=payload.encode("utf-8"),
                headers={
                    "DD-API-KEY": self.api_key,
                    "Content-Type": "application/json",
                },
            )
        except TransportError as e:
            logger.warning(f"Could not send logs: {e}")
            return False
        return True

    def close(self):
        self.session.close()

    def _url(self, path: str) -> str:
        return self.api_url.strip().rstrip("/") + "/" + path

    def _post(self, path: str, payload: dict) -> bool:
        try:
            self._request(
                "POST", self._url(path), params={"api_key": self.api_key}, json=payload
            )
        except TransportError as e:
            logger.warning(f"Could not submit to {path}: {e}")
            return False
        return True

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        # the api key travels in params/headers, keep it out of error messages
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e.__class__.__name__}") from e
        if not response.ok:
            raise TransportError(
                f"{method} {url} returned HTTP {response.status_code}", response
            )
        return response
