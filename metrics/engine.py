"""StatsD aggregation engine: ingestion, flush and harvest"""
import asyncio
import math
import sys
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple
from .models import MetricType
from .parser import MetricParseError, parse_line
from .percentiles import summarize
from .renderer import MetricLineRenderer
from .store import AggregationStore
from logging_config import get_logger, log_error, log_flush, log_harvest


logger = get_logger(__name__)

HARVEST_OK = 0


def write_to_stdout(output: str) -> None:
    """Default harvest sink"""
    if output:
        sys.stdout.write(output)
        sys.stdout.flush()


class StatsdEngine:
    """Owns the aggregation state for one aggregator instance.

    Applying updates, flushing and harvesting all run under one lock, so
    each is atomic with respect to the others. Lines arriving from the
    network go through an asyncio queue drained by a single consumer.
    """

    def __init__(self, config):
        self.config = config
        self.store = AggregationStore()
        self.renderer = MetricLineRenderer(config)
        self.output: List[str] = []
        self._lock = threading.RLock()
        self._queue: Optional[asyncio.Queue] = None

        # Engine statistics
        self.lines_received = 0
        self.lines_dropped = 0
        self.parse_errors = 0
        self.flush_count = 0
        self.harvest_count = 0
        self.last_flush_time = 0.0
        self.last_harvest_time = 0.0

    @property
    def queue(self) -> asyncio.Queue:
        """Ingestion queue, created lazily inside the running loop"""
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.config.queue_size)
        return self._queue

    def enqueue(self, line: str) -> bool:
        """Queue one decoded line for the consumer"""
        try:
            self.queue.put_nowait(line)
            return True
        except asyncio.QueueFull:
            self.lines_dropped += 1
            logger.warning("statsd ingestion queue full, dropping line",
                           queue_size=self.config.queue_size,
                           event_type="queue_full")
            return False

    async def run_consumer(self):
        """Drain the ingestion queue one line at a time, in arrival order"""
        queue = self.queue
        while True:
            line = await queue.get()
            try:
                self.process_line(line)
            finally:
                queue.task_done()
            # Let flush/harvest timers interleave with ingestion
            await asyncio.sleep(0)

    def process_line(self, line: str) -> bool:
        """Parse and apply one protocol line; failures are logged and dropped"""
        self.lines_received += 1
        try:
            update = parse_line(line)
        except MetricParseError as e:
            self.parse_errors += 1
            logger.error("statsd parser error", error=str(e), line=e.line, event_type="parse_error")
            return False

        if update is None:
            logger.debug("ignoring unsupported statsd metric type", line=line)
            return False

        with self._lock:
            self.store.apply(update)
        return True

    def flush(self, timestamp: Optional[int] = None) -> int:
        """Render every entry into the output buffer, then apply retention.

        Returns the number of lines appended.
        """
        start_time = time.time()
        if timestamp is None:
            timestamp = int(start_time)
        percentile = self.config.percentile
        render = self.renderer.render

        with self._lock:
            invalid_before = self.renderer.invalid_paths
            lines = []

            for gauge in self.store.gauge_entries():
                lines.append(render(MetricType.GAUGE, gauge.name, gauge.value, timestamp, gauge.tags))

            for counter in self.store.counter_entries():
                if not math.isfinite(counter.value):
                    logger.info("invalid statsd metric", reason="counter overflowed", name=counter.name)
                    continue
                lines.append(render(MetricType.COUNTER, counter.name, int(counter.value), timestamp, counter.tags))

            for timer in self.store.timer_entries():
                summary = summarize(timer.values, percentile)
                if summary is None:
                    continue
                for subkey, value in summary.items():
                    lines.append(render(MetricType.TIMER, timer.name, value, timestamp, timer.tags, subkey))

            rendered = [line for line in lines if line is not None]
            self.output.extend(rendered)
            self.store.apply_retention(self.config)

            self.flush_count += 1
            self.last_flush_time = time.time()
            dropped = self.renderer.invalid_paths - invalid_before

        log_flush(logger, len(rendered), self.last_flush_time - start_time, dropped)
        return len(rendered)

    def harvest(self) -> Tuple[str, int]:
        """Return and clear the buffered output; status is always 0"""
        with self._lock:
            lines = self.output
            self.output = []
            self.harvest_count += 1
            self.last_harvest_time = time.time()

        output = ""
        if lines:
            output = "\n".join(lines) + "\n"
        log_harvest(logger, len(lines))
        return output, HARVEST_OK

    async def run_flush_loop(self):
        """Flush every flush_interval seconds"""
        while True:
            await asyncio.sleep(self.config.flush_interval)
            try:
                self.flush()
            except Exception as e:
                log_error(logger, e, {"component": "flush_loop", "flush_count": self.flush_count})

    async def run_harvest_loop(self, sink: Callable[[str], None] = write_to_stdout):
        """Harvest every send_interval seconds and hand the output to sink"""
        while True:
            await asyncio.sleep(self.config.send_interval)
            try:
                output, _ = self.harvest()
                sink(output)
            except Exception as e:
                log_error(logger, e, {"component": "harvest_loop", "harvest_count": self.harvest_count})

    def stats(self) -> Dict[str, object]:
        """Engine counters for status reporting"""
        with self._lock:
            return {
                "lines_received": self.lines_received,
                "lines_dropped": self.lines_dropped,
                "parse_errors": self.parse_errors,
                "invalid_paths": self.renderer.invalid_paths,
                "flush_count": self.flush_count,
                "harvest_count": self.harvest_count,
                "buffered_lines": len(self.output),
                "queued_lines": self._queue.qsize() if self._queue is not None else 0,
                "entries": self.store.sizes(),
            }
