import time
import typing as T

from pydantic import BaseModel, Field

from ciwatch.core.enums import AlertType, Priority, ServiceCheckStatus
from ciwatch.utils.hostname import get_hostname
from ciwatch.utils.tags import TagMap, add_tag_to_map, convert_tags_to_list

UNKNOWN = "unknown"
SOURCE_TYPE_NAME = "jenkins"


def _now() -> int:
    return int(time.time())


class Event(BaseModel):
    """A one-off event shown in the monitoring backend's event stream."""

    title: str
    text: str = ""
    host: T.Optional[str] = None
    aggregation_key: T.Optional[str] = None
    tags: TagMap = Field(default_factory=dict)
    alert_type: AlertType = AlertType.INFO
    priority: Priority = Priority.NORMAL
    date: int = Field(default_factory=_now)
    jenkins_url: T.Optional[str] = None

    def tag_list(self) -> T.List[str]:
        return convert_tags_to_list(self.tags)

    def to_payload(self) -> dict:
        "The JSON body accepted by the events API"
        payload = {
            "title": self.title,
            "text": self.text,
            "date_happened": self.date,
            "alert_type": str(self.alert_type),
            "priority": str(self.priority),
            "source_type_name": SOURCE_TYPE_NAME,
            "tags": self.tag_list(),
        }
        if self.host:
            payload["host"] = self.host
        if self.aggregation_key:
            payload["aggregation_key"] = self.aggregation_key
        return payload


class ConfigChangedEvent(Event):
    """Emitted when someone saves a configuration file on the CI server."""

    @classmethod
    def build(
        cls,
        user: T.Optional[str] = None,
        file_name: T.Optional[str] = None,
        tags: T.Optional[TagMap] = None,
        hostname: T.Optional[str] = None,
        jenkins_url: T.Optional[str] = None,
    ) -> "ConfigChangedEvent":
        user = user or "anonymous"
        file_name = file_name or UNKNOWN
        host = get_hostname(hostname)
        jenkins_url = jenkins_url or UNKNOWN
        title = f"User {user} changed file {file_name}"
        text = f"%%% \n{title} \n\nHost: {host}, Jenkins URL: {jenkins_url} \n%%%"

        event_tags = {name: set(values) for name, values in (tags or {}).items()}
        add_tag_to_map(event_tags, "event_type", "system")
        return cls(
            title=title,
            text=text,
            host=host,
            aggregation_key=file_name,
            tags=event_tags,
            alert_type=AlertType.WARNING,
            priority=Priority.NORMAL,
            jenkins_url=jenkins_url,
        )

    def set_enums(self, event_type: str):
        """Downgrade routine system changes to low priority information."""
        if (event_type or "").lower() == "system":
            self.alert_type = AlertType.INFO
            self.priority = Priority.LOW
        else:
            self.alert_type = AlertType.WARNING
            self.priority = Priority.NORMAL


class ServiceCheck(BaseModel):
    name: str
    status: ServiceCheckStatus = ServiceCheckStatus.OK
    hostname: T.Optional[str] = None
    tags: TagMap = Field(default_factory=dict)
    message: T.Optional[str] = None
    timestamp: int = Field(default_factory=_now)

    def to_payload(self) -> dict:
        payload = {
            "check": self.name,
            "status": int(self.status),
            "host_name": self.hostname or "",
            "timestamp": self.timestamp,
            "tags": convert_tags_to_list(self.tags),
        }
        if self.message:
            payload["message"] = self.message
        return payload
