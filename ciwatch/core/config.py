"""Resolved plugin settings.

The CI host owns the configuration screen and its persistence; ciwatch
only needs the resulting values.  They can be handed over as a dict, a
YAML file or ``CIWATCH_*`` environment variables::

    report_with: DOGSTATSD
    target_host: localhost
    target_port: 8125
    global_tags: env:prod,team:ci
    blacklist: sandbox-.*,scratch
"""
import logging
import os
import re
import typing as T
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError, field_validator

from ciwatch.clients.http import DEFAULT_API_URL, DatadogHttpClient
from ciwatch.core.enums import ClientType
from ciwatch.core.exceptions import ConfigurationError
from ciwatch.utils.hostname import get_hostname
from ciwatch.utils.tags import TagMap, get_job_tags, merge_tag_maps, parse_tag_list

logger = logging.getLogger(__name__)

ENV_PREFIX = "CIWATCH_"
URL_FORM_ERROR = "The field must be configured in the form <http|https>://<url>/"
EMPTY_URL_ERROR = "Empty API URL"


def _split_jobs(jobs: T.Optional[str]) -> T.List[str]:
    return [job.strip() for job in re.split(r"[,\n]", jobs or "") if job.strip()]


def _job_matches(job_name: str, pattern: str) -> bool:
    try:
        return re.fullmatch(pattern, job_name, re.IGNORECASE) is not None
    except re.error:
        return pattern.lower() == job_name.lower()


class GlobalConfiguration(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    report_with: ClientType = ClientType.HTTP
    target_api_url: str = DEFAULT_API_URL
    target_api_key: T.Optional[SecretStr] = None
    target_log_intake_url: T.Optional[str] = None
    target_host: T.Optional[str] = None
    target_port: T.Optional[int] = None
    hostname: T.Optional[str] = None
    blacklist: T.Optional[str] = None
    whitelist: T.Optional[str] = None
    global_tags: T.Optional[str] = None
    global_job_tags: T.Optional[str] = None
    emit_security_events: bool = True
    emit_system_events: bool = True

    @field_validator(
        "target_api_key",
        "target_log_intake_url",
        "target_host",
        "hostname",
        "blacklist",
        "whitelist",
        "global_tags",
        "global_job_tags",
        mode="before",
    )
    @classmethod
    def empty_to_none(cls, value):
        "Blank form fields mean unset"
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("report_with", mode="before")
    @classmethod
    def normalize_report_with(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @classmethod
    def parse_from_yaml(cls, source: T.Union[str, Path, T.IO]) -> "GlobalConfiguration":
        "Parse from a path or file-like"
        if isinstance(source, (str, Path)):
            with open(source, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        else:
            data = yaml.safe_load(source)
        return cls.parse_obj(data or {})

    @classmethod
    def parse_obj(cls, data: dict) -> "GlobalConfiguration":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: T.Optional[T.Mapping[str, str]] = None):
        """Build from ``CIWATCH_<FIELD>`` variables, e.g. CIWATCH_TARGET_PORT."""
        environ = os.environ if environ is None else environ
        data = {}
        for name in cls.model_fields:
            value = environ.get(ENV_PREFIX + name.upper())
            if value is not None:
                data[name] = value
        return cls.parse_obj(data)

    def api_key(self) -> T.Optional[str]:
        return self.target_api_key.get_secret_value() if self.target_api_key else None

    def resolved_hostname(self) -> str:
        return get_hostname(self.hostname)

    def get_global_tags(self) -> TagMap:
        return parse_tag_list(self.global_tags)

    def get_tags_for_job(self, job_name: str) -> TagMap:
        "Global tags plus the job tags whose pattern matches job_name"
        return merge_tag_maps(
            self.get_global_tags(), get_job_tags(job_name, self.global_job_tags)
        )

    def is_job_tracked(self, job_name: str) -> bool:
        """A job is tracked unless blacklisted, or missing from a
        non-empty whitelist."""
        if any(_job_matches(job_name, job) for job in _split_jobs(self.blacklist)):
            return False
        whitelist = _split_jobs(self.whitelist)
        if whitelist:
            return any(_job_matches(job_name, job) for job in whitelist)
        return True


def check_target_api_url(target_api_url: T.Optional[str]) -> str:
    if not target_api_url or not target_api_url.strip():
        raise ConfigurationError(EMPTY_URL_ERROR, "target_api_url")
    if "http" not in target_api_url:
        raise ConfigurationError(URL_FORM_ERROR, "target_api_url")
    return "Valid URL"


def check_connection(target_api_url: str, target_api_key: str) -> bool:
    """Check an API key without installing a client."""
    try:
        client = DatadogHttpClient(target_api_url, target_api_key)
    except ConfigurationError as e:
        logger.warning(str(e))
        return False
    try:
        return client.validate()
    finally:
        client.close()
