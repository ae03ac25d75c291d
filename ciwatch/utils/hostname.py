import logging
import re
import socket
import typing as T

logger = logging.getLogger(__name__)

MAX_HOSTNAME_LENGTH = 255
LOCAL_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "localhost6.localdomain6",
    "ip6-localhost",
}
HOSTNAME_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$", re.IGNORECASE)


def is_valid_hostname(hostname: T.Optional[str]) -> bool:
    """Check a hostname against RFC 1123.

    Names that only ever point at the local machine are rejected too;
    they would make every agent report as the same host."""
    if not hostname:
        return False
    if hostname.lower() in LOCAL_HOSTNAMES:
        return False
    if len(hostname) > MAX_HOSTNAME_LENGTH:
        return False
    labels = hostname.rstrip(".").split(".")
    return all(HOSTNAME_LABEL_RE.match(label) for label in labels)


def get_hostname(configured: T.Optional[str] = None) -> str:
    """The configured hostname if valid, else this machine's name."""
    if configured:
        if is_valid_hostname(configured):
            return configured
        logger.warning(f"Configured hostname {configured} is not valid (RFC 1123)")
    hostname = socket.gethostname()
    if is_valid_hostname(hostname):
        return hostname
    try:
        hostname = socket.getfqdn()
    except OSError:  # pragma: no cover
        return ""
    return hostname if is_valid_hostname(hostname) else ""
