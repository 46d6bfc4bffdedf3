"""Aggregation store for gauges, counters and timers"""
from typing import Dict, List, Optional
from .models import (
    CounterEntry,
    GaugeEntry,
    MetricKey,
    MetricType,
    MetricUpdate,
    TimerEntry,
)


class AggregationStore:
    """Three independent collections keyed by (name, tag set).

    Insertion order of each collection is the flush iteration order. The
    store is not synchronized; the engine serializes access to it.
    """

    def __init__(self):
        self.gauges: Dict[MetricKey, GaugeEntry] = {}
        self.counters: Dict[MetricKey, CounterEntry] = {}
        self.timers: Dict[MetricKey, TimerEntry] = {}

    def apply_gauge(self, name: str, tags: Optional[Dict[str, str]], value: float) -> GaugeEntry:
        """Replace the gauge value"""
        key = MetricKey.of(name, tags)
        entry = self.gauges.get(key)
        if entry is None:
            entry = self.gauges[key] = GaugeEntry(name, dict(tags or {}))
        entry.value = value
        return entry

    def apply_counter(self, name: str, tags: Optional[Dict[str, str]], amount: float) -> CounterEntry:
        """Add an already sample-rate-scaled amount to the counter"""
        key = MetricKey.of(name, tags)
        entry = self.counters.get(key)
        if entry is None:
            entry = self.counters[key] = CounterEntry(name, dict(tags or {}))
        entry.value += amount
        return entry

    def apply_timer(self, name: str, tags: Optional[Dict[str, str]], sample: float) -> TimerEntry:
        """Append an already sample-rate-scaled sample to the timer"""
        key = MetricKey.of(name, tags)
        entry = self.timers.get(key)
        if entry is None:
            entry = self.timers[key] = TimerEntry(name, dict(tags or {}))
        entry.values.append(sample)
        return entry

    def apply(self, update: MetricUpdate):
        """Dispatch a parsed update to the matching collection"""
        if update.metric_type == MetricType.GAUGE:
            return self.apply_gauge(update.name, update.tags, update.value)
        if update.metric_type == MetricType.COUNTER:
            return self.apply_counter(update.name, update.tags, update.scaled_value)
        if update.metric_type == MetricType.TIMER:
            return self.apply_timer(update.name, update.tags, update.scaled_value)
        raise ValueError(f"Unsupported metric type: {update.metric_type}")

    def gauge_entries(self) -> List[GaugeEntry]:
        return list(self.gauges.values())

    def counter_entries(self) -> List[CounterEntry]:
        return list(self.counters.values())

    def timer_entries(self) -> List[TimerEntry]:
        return list(self.timers.values())

    def clear(self):
        """Remove every entry from every collection"""
        self.gauges.clear()
        self.counters.clear()
        self.timers.clear()

    def apply_retention(self, config) -> None:
        """Apply the post-flush policy.

        With clear_on_flush every collection is emptied. Otherwise each kind
        is deleted, reset in place or kept according to its delete_* and
        reset_* flags, delete taking precedence.
        """
        if config.clear_on_flush:
            self.clear()
            return

        if config.delete_gauges:
            self.gauges.clear()
        elif config.reset_gauges:
            for gauge in self.gauges.values():
                gauge.value = 0.0

        if config.delete_counters:
            self.counters.clear()
        elif config.reset_counters:
            for counter in self.counters.values():
                counter.value = 0.0

        if config.delete_timers:
            self.timers.clear()
        elif config.reset_timers:
            for timer in self.timers.values():
                timer.values = []

    def sizes(self) -> Dict[str, int]:
        """Entry count per metric kind"""
        return {
            MetricType.GAUGE.value: len(self.gauges),
            MetricType.COUNTER.value: len(self.counters),
            MetricType.TIMER.value: len(self.timers),
        }
