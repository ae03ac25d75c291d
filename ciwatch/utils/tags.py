"""Tag helpers.

Internally tags are a mapping of tag name to a set of values, so one
name can carry several values.  On the wire they are flattened to
``"name:value"`` strings, one per value.
"""
import logging
import re
import typing as T

logger = logging.getLogger(__name__)

TagMap = T.Dict[str, T.Set[str]]

TAG_SEPARATORS = re.compile(r"[,\n]")


def add_tag_to_map(tags: T.Optional[TagMap], name: str, value: str = "") -> TagMap:
    """Add ``value`` to the values of ``name`` and return the map."""
    if tags is None:
        tags = {}
    tags.setdefault(name, set()).add(value or "")
    return tags


def merge_tag_maps(*maps: T.Optional[TagMap]) -> TagMap:
    """Union of several tag maps. None entries are skipped."""
    merged: TagMap = {}
    for tag_map in maps:
        for name, values in (tag_map or {}).items():
            merged.setdefault(name, set()).update(values)
    return merged


def convert_tags_to_list(tags: T.Optional[TagMap]) -> T.List[str]:
    """Flatten a tag map to sorted ``name:value`` strings.

    A tag without a value is emitted as the bare name."""
    result = []
    for name, values in (tags or {}).items():
        for value in values or {""}:
            result.append(f"{name}:{value}" if value else name)
    return sorted(result)


def parse_tag(tag: str) -> T.Tuple[str, str]:
    name, _, value = tag.strip().partition(":")
    return name.strip(), value.strip()


def parse_tag_list(text: T.Optional[str]) -> TagMap:
    """Parse ``"env:prod,team:ci,canary"`` into a tag map."""
    tags: TagMap = {}
    if not text:
        return tags
    for item in TAG_SEPARATORS.split(text):
        name, value = parse_tag(item)
        if name:
            add_tag_to_map(tags, name, value)
    return tags


def get_job_tags(job_name: str, global_job_tags: T.Optional[str]) -> TagMap:
    """Resolve per-job tags from the global job tags setting.

    Each line (or ``;`` separated entry) is a job name regex followed by
    comma separated tags.  Tag values may reference regex groups with
    ``$1``, ``$2``..::

        (.*?)_job_(.*?)_release, owner:$1, release_env:$2
    """
    tags: TagMap = {}
    if not job_name or not global_job_tags:
        return tags
    for line in re.split(r"[\n;]", global_job_tags):
        items = [item.strip() for item in line.split(",")]
        if len(items) < 2 or not items[0]:
            continue
        try:
            match = re.fullmatch(items[0], job_name)
        except re.error:
            logger.warning(f"Ignoring invalid job tag pattern: {items[0]}")
            continue
        if not match:
            continue
        for tag in items[1:]:
            name, value = parse_tag(tag)
            if not name:
                continue
            value = re.sub(
                r"\$(\d+)",
                lambda m: _group(match, int(m.group(1))),
                value,
            )
            add_tag_to_map(tags, name, value)
    return tags


def _group(match: T.Match, index: int) -> str:
    try:
        return match.group(index) or ""
    except IndexError:
        return ""
