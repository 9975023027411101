"""
Tracks how far the server's clock is ahead of ours (it's usually mostly
the one-way lag). Smoothed so one late packet doesn't yank the render
time around.
"""

import time

from ..shared.constants import SKEW_SMOOTHING


def local_time_ms() -> float:
    return time.time() * 1000.0


class ClockSkewEstimator:
    """Exponentially smoothed estimate of server_time - local_time, in ms."""

    def __init__(self, smoothing: float = SKEW_SMOOTHING, initial: float = 0.0):
        self.smoothing = smoothing
        self.skew = initial

    def update(self, server_time_ms: float, local_now_ms: float) -> float:
        """Fold in one snapshot's timestamp; returns the new estimate."""
        sample = server_time_ms - local_now_ms
        self.skew = (1.0 - self.smoothing) * self.skew + self.smoothing * sample
        return self.skew

    def server_now(self, local_now_ms: float) -> float:
        """Best guess of the current server time."""
        return local_now_ms + self.skew
