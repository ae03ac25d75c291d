import json
import logging
import typing as T

from ciwatch.clients.factory import get_client
from ciwatch.logs.trace_cache import TraceCache, trace_cache
from ciwatch.utils.tags import TagMap, convert_tags_to_list

logger = logging.getLogger(__name__)

LOG_SOURCE = "jenkins"
LOG_SERVICE = "jenkins"


class LogWriter:
    """Forwards the console output of one build, line by line.

    ``tags`` and ``attributes`` describe the build and are resolved by the
    caller once per build.  Nothing raised here reaches the build: a line
    that cannot be sent is logged and dropped."""

    def __init__(
        self,
        tags: T.Optional[TagMap] = None,
        attributes: T.Optional[dict] = None,
        build_id: T.Optional[str] = None,
        client_provider: T.Callable = get_client,
        traces: T.Optional[TraceCache] = None,
    ):
        self.tags = tags or {}
        self.attributes = attributes or {}
        self.build_id = build_id
        self.client_provider = client_provider
        self.traces = traces if traces is not None else trace_cache

    def build_payload(self, line: str) -> dict:
        payload = {"ddtags": ",".join(convert_tags_to_list(self.tags))}
        payload.update(self.attributes)
        payload["message"] = line
        payload["ddsource"] = LOG_SOURCE
        payload["service"] = LOG_SERVICE
        span = self.traces.get(self.build_id)
        if span is not None:
            payload["trace_id"] = span.trace_id
            payload["span_id"] = span.span_id
        return payload

    def write(self, line: T.Optional[str]) -> bool:
        if not line:
            return False
        try:
            client = self.client_provider()
            if client is None:
                return False
            payload = json.dumps(self.build_payload(line))
            if client.send_logs(payload):
                return True
            # the connection may have to be re-established
            return client.send_logs(payload)
        except Exception:
            logger.exception("Failed to forward a build log line")
            return False
