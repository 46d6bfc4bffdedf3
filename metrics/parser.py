"""StatsD line protocol parser

Decodes ``name:value|type[|@sample_rate][|#tag1:val1,tag2:val2]`` into a
:class:`MetricUpdate`. Types ``g`` are gauges, anything starting with ``c``
(or exactly ``m``) is a counter, and ``ms``, ``h`` and ``t`` are timers.
"""
import math
from typing import Dict, Optional
from .models import MetricType, MetricUpdate
from logging_config import get_logger


logger = get_logger(__name__)

TIMER_TYPES = ("ms", "h", "t")


class MetricParseError(ValueError):
    """Raised for a line that cannot be decoded"""

    def __init__(self, message: str, line: str):
        super().__init__(message)
        self.line = line


def metric_type_for(type_code: Optional[str]) -> Optional[MetricType]:
    """Map a protocol type code to a metric kind, None if unrecognized"""
    if not type_code:
        return None
    if type_code == "g":
        return MetricType.GAUGE
    if type_code.startswith("c") or type_code == "m":
        return MetricType.COUNTER
    if type_code in TIMER_TYPES:
        return MetricType.TIMER
    return None


def parse_sample_rate(field: str) -> float:
    """Parse an ``@rate`` field, falling back to 1.0"""
    try:
        rate = float(field.lstrip("@"))
    except ValueError:
        logger.debug("invalid statsd sample rate", field=field)
        return 1.0
    if not math.isfinite(rate) or rate <= 0:
        logger.debug("invalid statsd sample rate", field=field)
        return 1.0
    return rate


def parse_tags(field: str) -> Dict[str, str]:
    """Parse a ``#k1:v1,k2:v2`` field into an ordered dict"""
    tags = {}
    for pair in field.lstrip("#").split(","):
        if not pair:
            continue
        key, _, value = pair.partition(":")
        tags[key] = value
    return tags


def parse_line(line: str) -> Optional[MetricUpdate]:
    """Parse one protocol line.

    Returns None for an unrecognized metric type and raises
    MetricParseError for malformed input.
    """
    stripped = line.strip()
    if not stripped:
        raise MetricParseError("empty line", line)

    name_value, *fields = stripped.split("|")
    name, sep, raw_value = name_value.partition(":")
    if not sep:
        raise MetricParseError("missing ':' between name and value", line)

    try:
        value = float(raw_value)
    except ValueError:
        raise MetricParseError(f"invalid value {raw_value!r}", line) from None
    if not math.isfinite(value):
        raise MetricParseError(f"non-finite value {raw_value!r}", line)

    type_code = fields[0] if fields else None
    sample_rate = 1.0
    tags = {}
    for extra in fields[1:]:
        if extra.startswith("@"):
            sample_rate = parse_sample_rate(extra)
        elif extra.startswith("#"):
            tags = parse_tags(extra)

    metric_type = metric_type_for(type_code)
    if metric_type is None:
        return None

    return MetricUpdate(
        metric_type=metric_type,
        name=name,
        value=value,
        tags=tags,
        sample_rate=sample_rate
    )
