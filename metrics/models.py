"""Metric data models"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple
from enum import Enum


class MetricType(Enum):
    """StatsD metric kinds, valued by their output path segment"""
    GAUGE = "gauges"
    COUNTER = "counters"
    TIMER = "timers"


class HarvestMode(Enum):
    """Where harvested output goes"""
    HTTP = "http"
    STDOUT = "stdout"


def freeze_tags(tags: Optional[Dict[str, str]]) -> FrozenSet[Tuple[str, str]]:
    """Order-independent, hashable view of a tag set"""
    return frozenset((tags or {}).items())


@dataclass(frozen=True)
class MetricKey:
    """Identity of one aggregation slot: metric name plus tag set"""
    name: str
    tags: FrozenSet[Tuple[str, str]] = frozenset()

    @classmethod
    def of(cls, name: str, tags: Optional[Dict[str, str]] = None) -> "MetricKey":
        return cls(name, freeze_tags(tags))


@dataclass
class GaugeEntry:
    """Last-write-wins value"""
    name: str
    tags: Dict[str, str]
    value: float = 0.0


@dataclass
class CounterEntry:
    """Sum of sample-rate-scaled increments since the last flush"""
    name: str
    tags: Dict[str, str]
    value: float = 0.0


@dataclass
class TimerEntry:
    """Raw samples recorded since the last flush"""
    name: str
    tags: Dict[str, str]
    values: List[float] = field(default_factory=list)


@dataclass
class MetricUpdate:
    """A single decoded protocol line"""
    metric_type: MetricType
    name: str
    value: float
    tags: Dict[str, str] = field(default_factory=dict)
    sample_rate: float = 1.0

    def __post_init__(self):
        # Ensure tags is never None
        if self.tags is None:
            self.tags = {}

    @property
    def scaled_value(self) -> float:
        """Value compensated for sampling"""
        return self.value / self.sample_rate
