"""Attempt-based progress estimate for a polling job.

WHY: The service reports no progress of its own, only "processing" until
it is done. Users still need a bar that moves. The estimate is derived
from how much of the attempt budget has been used, held below 100 until
the service actually reports completion.

HOW: ProgressEstimator maps attempts → percent, clamps at the ceiling
while processing, snaps to 100 on completion, and remembers the highest
value it has reported so the bar never moves backwards.

RULES:
- processing: min(attempts / max_attempts * 100, 95)
- completed: exactly 100
- failed / timed out: caller keeps the last value (``freeze()``)
- ``value`` is monotonically non-decreasing for the estimator's lifetime
"""

from __future__ import annotations

from sta_transcriber.config import MAX_POLL_ATTEMPTS, PROGRESS_CEILING


class ProgressEstimator:
    """Monotonic 0–100 progress derived from the poll attempt count."""

    def __init__(
        self,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        ceiling: float = PROGRESS_CEILING,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self.max_attempts = max_attempts
        self.ceiling = ceiling
        self._value = 0.0
        self._frozen = False

    @property
    def value(self) -> float:
        return self._value

    def estimate(self, attempts: int) -> float:
        """Pure mapping from attempts to percent (no state change)."""
        return min(attempts / self.max_attempts * 100.0, self.ceiling)

    def advance(self, attempts: int) -> float:
        if not self._frozen:
            self._value = max(self._value, self.estimate(attempts))
        return self._value

    def complete(self) -> float:
        self._value = 100.0
        self._frozen = True
        return self._value

    def freeze(self) -> float:
        self._frozen = True
        return self._value


def format_elapsed(seconds: float) -> str:
    """Short elapsed-time label for status lines: "45s" or "2m 5s"."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return "{}m {}s".format(minutes, secs)
    return "{}s".format(secs)


def format_duration(seconds: float) -> str:
    """Processing-time label for summaries: "42 sec" or "3 min 7 sec"."""
    total = int(seconds)
    if total < 60:
        return "{} sec".format(total)
    minutes, secs = divmod(total, 60)
    return "{} min {} sec".format(minutes, secs)
