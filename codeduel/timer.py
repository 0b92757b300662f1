"""
Per-request timing for access logs.
"""

import time


class RequestTimer:
    """
    Tracks how long a single HTTP request has been running.
    """

    def __init__(self) -> None:
        self.start_time: float | None = None

    def start(self) -> None:
        """Start the timer for this request."""
        self.start_time = time.perf_counter()

    def elapsed(self) -> float:
        """Return elapsed seconds since start."""
        if self.start_time is None:
            return 0.0
        return time.perf_counter() - self.start_time

    def elapsed_ms(self) -> int:
        """Return elapsed milliseconds since start, rounded."""
        return int(round(self.elapsed() * 1000))
