"""Timer summary statistics"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class TimerSummary:
    """lower/mean/upper and the upper bound at the percentile threshold"""
    lower: float
    mean: float
    upper: float
    upper_percentile: float
    percentile: int = 90

    def items(self):
        """(subkey, value) pairs in render order"""
        return [
            ("lower", self.lower),
            ("mean", self.mean),
            ("upper", self.upper),
            (f"upper_{self.percentile}", self.upper_percentile),
        ]


def round_half_away_from_zero(value: float) -> int:
    """Round like statsd does, 2.5 -> 3 and -2.5 -> -3"""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def summarize(samples: Iterable[float], percentile: int = 90) -> Optional[TimerSummary]:
    """Summarize raw timer samples, None when there are none"""
    values = sorted(samples)
    count = len(values)
    if count == 0:
        return None

    lower = values[0]
    upper = values[-1]
    if count == 1:
        return TimerSummary(lower, lower, lower, lower, percentile)

    threshold_index = ((100 - percentile) / 100.0) * count
    threshold_count = count - round_half_away_from_zero(threshold_index)
    # Keep at least the smallest sample
    valid = values[:max(threshold_count, 1)]

    mean = sum(valid) / len(valid)
    return TimerSummary(lower, mean, upper, valid[-1], percentile)
