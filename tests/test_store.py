"""Tests for the aggregation store"""
from config import Config
from metrics.models import MetricKey, MetricType, MetricUpdate
from metrics.store import AggregationStore


class TestMetricKey:
    """Test metric identity"""

    def test_tag_order_does_not_matter(self):
        first = MetricKey.of("x", {"a": "1", "b": "2"})
        second = MetricKey.of("x", {"b": "2", "a": "1"})

        assert first == second
        assert hash(first) == hash(second)

    def test_extra_tag_is_a_different_identity(self):
        assert MetricKey.of("x", {"a": "1"}) != MetricKey.of("x", {"a": "1", "extratag": "1"})

    def test_no_tags(self):
        assert MetricKey.of("x") == MetricKey.of("x", {})


class TestAggregationStore:
    """Test accumulation semantics"""

    def setup_method(self):
        """Setup test fixtures"""
        self.store = AggregationStore()

    def test_gauge_last_write_wins(self):
        self.store.apply_gauge("g", {}, 5.0)
        self.store.apply_gauge("g", {}, 8.0)

        entries = self.store.gauge_entries()
        assert len(entries) == 1
        assert entries[0].value == 8.0

    def test_counter_accumulates(self):
        self.store.apply_counter("c", {}, 10.0)
        self.store.apply_counter("c", {}, 10.0)

        assert self.store.counter_entries()[0].value == 20.0

    def test_timer_appends(self):
        self.store.apply_timer("t", {}, 30.0)
        self.store.apply_timer("t", {}, 40.0)

        assert self.store.timer_entries()[0].values == [30.0, 40.0]

    def test_tags_keep_first_seen_order(self):
        self.store.apply_gauge("g", {"b": "2", "a": "1"}, 1.0)
        self.store.apply_gauge("g", {"a": "1", "b": "2"}, 2.0)

        entries = self.store.gauge_entries()
        assert len(entries) == 1
        assert list(entries[0].tags) == ["b", "a"]
        assert entries[0].value == 2.0

    def test_different_tags_are_independent(self):
        self.store.apply_gauge("test1.value", {"t3": "10", "t4": "value2"}, 30.0)
        self.store.apply_gauge("test1.value", {"t3": "10", "t4": "value2", "extratag": "1"}, 130.0)

        values = sorted(entry.value for entry in self.store.gauge_entries())
        assert values == [30.0, 130.0]

    def test_kinds_never_merge(self):
        self.store.apply_gauge("x", {}, 1.0)
        self.store.apply_counter("x", {}, 1.0)
        self.store.apply_timer("x", {}, 1.0)

        assert self.store.sizes() == {"gauges": 1, "counters": 1, "timers": 1}

    def test_apply_dispatches_scaled_values(self):
        self.store.apply(MetricUpdate(MetricType.COUNTER, "c", 10.0, sample_rate=0.5))
        self.store.apply(MetricUpdate(MetricType.TIMER, "t", 10.0, sample_rate=0.5))
        self.store.apply(MetricUpdate(MetricType.GAUGE, "g", 10.0, sample_rate=0.5))

        assert self.store.counter_entries()[0].value == 20.0
        assert self.store.timer_entries()[0].values == [20.0]
        # Gauges are absolute
        assert self.store.gauge_entries()[0].value == 10.0

    def test_input_tags_are_copied(self):
        tags = {"a": "1"}
        self.store.apply_gauge("g", tags, 1.0)
        tags["b"] = "2"

        assert self.store.gauge_entries()[0].tags == {"a": "1"}


class TestRetention:
    """Test the post-flush policy"""

    def setup_method(self):
        """Setup test fixtures"""
        self.store = AggregationStore()
        self.store.apply_gauge("g", {}, 5.0)
        self.store.apply_counter("c", {}, 3.0)
        self.store.apply_timer("t", {}, 1.0)

    def test_clear_on_flush_default(self):
        self.store.apply_retention(Config())

        assert self.store.sizes() == {"gauges": 0, "counters": 0, "timers": 0}

    def test_per_kind_defaults(self):
        """Gauges retained, counters and timers reset in place"""
        self.store.apply_retention(Config(clear_on_flush=False))

        assert self.store.gauge_entries()[0].value == 5.0
        assert self.store.counter_entries()[0].value == 0.0
        assert self.store.timer_entries()[0].values == []

    def test_delete_takes_precedence(self):
        config = Config(
            clear_on_flush=False,
            delete_gauges=True,
            delete_counters=True,
            delete_timers=True,
            reset_gauges=True,
        )
        self.store.apply_retention(config)

        assert self.store.sizes() == {"gauges": 0, "counters": 0, "timers": 0}

    def test_reset_gauges(self):
        self.store.apply_retention(Config(clear_on_flush=False, reset_gauges=True))

        assert self.store.gauge_entries()[0].value == 0.0

    def test_keep_everything(self):
        config = Config(clear_on_flush=False, reset_counters=False, reset_timers=False)
        self.store.apply_retention(config)

        assert self.store.counter_entries()[0].value == 3.0
        assert self.store.timer_entries()[0].values == [1.0]
