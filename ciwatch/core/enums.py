import enum


class StrEnum(str, enum.Enum):
    """Shim to preserve pre-Python 3.11 behavior
    for the string values of enum members.

    This can be replaced by enum.StrEnum when 3.11
    is the oldest supported version."""

    __str__ = str.__str__  # type: ignore


class ClientType(StrEnum):
    HTTP = "HTTP"
    DOGSTATSD = "DOGSTATSD"


class AlertType(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


class Priority(StrEnum):
    NORMAL = "normal"
    LOW = "low"


class ServiceCheckStatus(enum.IntEnum):
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3
