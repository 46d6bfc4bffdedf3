"""Plaintext metric line renderer"""
import re
from typing import Dict, List, Optional, Union
from .models import MetricType
from logging_config import get_logger


logger = get_logger(__name__)

VALID_PATH = re.compile(r"[A-Za-z0-9._-]*")


def format_value(value: Union[int, float]) -> str:
    """Render a metric value; floats keep their decimal point"""
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, int):
        return str(value)
    return repr(float(value))


def format_tags(tags: Optional[Dict[str, str]]) -> str:
    """Render tags as comma-joined key:value pairs in their own order"""
    if not tags:
        return ""
    return ",".join(f"{key}:{value}" for key, value in tags.items())


class MetricLineRenderer:
    """Builds ``path value timestamp[ tags]`` lines"""

    def __init__(self, config):
        self.config = config
        self.prefixes: List[str] = config.path_prefixes()
        self.invalid_paths = 0

    def build_path(self, metric_type: MetricType, name: str, subkey: Optional[str] = None) -> str:
        """Join the prefixes, kind segment, name and optional subkey"""
        parts = list(self.prefixes)
        parts.append(metric_type.value)
        parts.append(name)
        if subkey:
            parts.append(subkey)
        return ".".join(parts)

    @staticmethod
    def is_valid_path(path: str) -> bool:
        return VALID_PATH.fullmatch(path) is not None

    def render(self,
               metric_type: MetricType,
               name: str,
               value: Union[int, float],
               timestamp: int,
               tags: Optional[Dict[str, str]] = None,
               subkey: Optional[str] = None) -> Optional[str]:
        """Render one line, or None when the path is invalid"""
        path = self.build_path(metric_type, name, subkey)
        if not self.is_valid_path(path):
            self.invalid_paths += 1
            logger.info(
                "invalid statsd metric",
                reason="metric path must only consist of alpha-numeric characters, periods, underscores, and dashes",
                path=path,
                value=value
            )
            return None

        logger.debug("adding statsd metric", path=path, value=value)
        line = f"{path} {format_value(value)} {timestamp}"
        tag_suffix = format_tags(tags)
        if tag_suffix:
            line = f"{line} {tag_suffix}"
        return line
