import logging
import socket
import threading
import typing as T

from ciwatch.clients.base import BaseClient
from ciwatch.core.enums import ClientType
from ciwatch.core.exceptions import ConfigurationError
from ciwatch.events.models import Event, ServiceCheck

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8125

TARGET_HOST_ERROR = "Datadog Target URL is not set properly"
TARGET_PORT_ERROR = "Datadog Target Port is not set properly"


def format_tags(tags: T.Iterable[str]) -> str:
    tags = sorted(tags or ())
    return "|#" + ",".join(tags) if tags else ""


def escape_event_text(text: str) -> str:
    return (text or "").replace("\n", "\\n")


class DogStatsDClient(BaseClient):
    """Reports to a DogStatsD agent over UDP.

    Every counter is its own datagram.  Nothing is acknowledged, so a
    successful send only means the datagram left this host."""

    client_type = ClientType.DOGSTATSD

    def __init__(self, host: T.Optional[str], port: T.Optional[int], **kwargs):
        self.host = host
        self.port = port
        self._socket = None
        self._socket_lock = threading.Lock()
        self._closed = False
        super().__init__(**kwargs)

    @property
    def settings(self) -> tuple:
        return (self.host, self.port)

    def validate_configuration(self):
        if not self.host or not self.host.strip():
            raise ConfigurationError(TARGET_HOST_ERROR, "target_host")
        try:
            port = int(self.port)
        except (TypeError, ValueError):
            raise ConfigurationError(TARGET_PORT_ERROR, "target_port")
        if port <= 0:
            raise ConfigurationError(TARGET_PORT_ERROR, "target_port")
        self.port = port

    def validate(self) -> bool:
        self.validate_configuration()
        try:
            return self._get_socket() is not None
        except OSError as e:
            logger.warning(f"Cannot open a UDP socket: {e}")
            return False

    def submit_counter(self, name, hostname, tags, value) -> bool:
        tags = set(tags or ())
        if hostname:
            tags.add(f"host:{hostname}")
        return self._send(f"{name}:{value}|c{format_tags(tags)}")

    def send_event(self, event: Event) -> bool:
        title = escape_event_text(event.title)
        text = escape_event_text(event.text)
        # header lengths are in UTF-8 bytes
        title_len = len(title.encode("utf-8"))
        text_len = len(text.encode("utf-8"))
        parts = [f"_e{{{title_len},{text_len}}}:{title}|{text}", f"d:{event.date}"]
        if event.host:
            parts.append(f"h:{event.host}")
        if event.aggregation_key:
            parts.append(f"k:{event.aggregation_key}")
        parts.append(f"p:{event.priority}")
        parts.append(f"t:{event.alert_type}")
        return self._send("|".join(parts) + format_tags(event.tag_list()))

    def send_service_check(self, check: ServiceCheck) -> bool:
        parts = [f"_sc|{check.name}|{int(check.status)}", f"d:{check.timestamp}"]
        if check.hostname:
            parts.append(f"h:{check.hostname}")
        datagram = "|".join(parts) + format_tags(check.to_payload()["tags"])
        if check.message:
            datagram += f"|m:{escape_event_text(check.message)}"
        return self._send(datagram)

    def send_logs(self, payload: str) -> bool:
        logger.warning("Logs cannot be sent through DogStatsD; use the HTTP client")
        return False

    def close(self):
        with self._socket_lock:
            self._closed = True
            if self._socket is not None:
                self._socket.close()
                self._socket = None

    def _get_socket(self) -> T.Optional[socket.socket]:
        with self._socket_lock:
            if self._closed:
                return None
            if self._socket is None:
                self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            return self._socket

    def _send(self, datagram: str) -> bool:
        try:
            sock = self._get_socket()
            if sock is None:
                logger.debug(f"Dropping datagram for closed client {self!r}")
                return False
            sock.sendto(datagram.encode("utf-8"), (self.host, self.port))
        except OSError as e:
            logger.warning(f"UDP send to {self.host}:{self.port} failed: {e}")
            return False
        return True
