"""Job state, transcript result, and immutable job snapshots.

WHY: A job used to be described by several independent flags (loading,
status text, progress, error, result) that could contradict each other —
"loading" with an error set, a result with no completed state. One tagged
state value with explicit transitions makes those combinations
unrepresentable.

HOW: Three pieces:
  JobState          — enum of valid states; terminal ones are final
  TranscriptResult  — the completed transcript and its metadata
  TranscriptionJob  — frozen snapshot handed to readers
JobRecord is the single mutable record, owned by the StatusPoller; every
change goes through ``transition()``/``record_attempt()``, and readers get
``snapshot()`` copies.

RULES:
- Terminal states (COMPLETED, FAILED, TIMED_OUT, CANCELLED) are never left
- ``result`` is set iff state is COMPLETED
- ``error`` is set iff state is FAILED, TIMED_OUT or CANCELLED
- ``attempts`` never exceeds ``max_attempts``
- ``id`` cannot change once assigned
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass
from typing import Optional

from sta_transcriber.api.errors import TranscriptionError


class JobState(str, enum.Enum):
    """Valid states for a transcription job.

    RULES:
    - submitted: the service assigned an id; no poll has run yet
    - processing: polling is under way
    - completed: transcript captured
    - failed: the service reported an error, or a response was unreadable
    - timed_out: the attempt budget ran out
    - cancelled: stopped through the cancellation token
    """

    SUBMITTED = "submitted"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    JobState.COMPLETED,
    JobState.FAILED,
    JobState.TIMED_OUT,
    JobState.CANCELLED,
})

_ALLOWED_TRANSITIONS = {
    JobState.SUBMITTED: frozenset({JobState.PROCESSING, JobState.CANCELLED}),
    JobState.PROCESSING: frozenset({
        JobState.PROCESSING,
        JobState.COMPLETED,
        JobState.FAILED,
        JobState.TIMED_OUT,
        JobState.CANCELLED,
    }),
}


class InvalidTransitionError(RuntimeError):
    """Raised when code tries to move a job along a forbidden edge."""


@dataclass(frozen=True)
class TranscriptResult:
    """A completed transcript with the metadata the exporters need.

    Attributes:
        text: Full transcript text as returned by the service.
        language_code: Detected language (e.g. "es"), if reported.
        confidence: Overall confidence 0.0–1.0, if reported.
        duration_seconds: Wall-clock seconds from submission to completion.
    """

    text: str
    language_code: Optional[str] = None
    confidence: Optional[float] = None
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class TranscriptionJob:
    """Immutable snapshot of one job, safe to hand to any reader."""

    id: str
    state: JobState
    attempts: int
    max_attempts: int
    created_at: float
    last_polled_at: Optional[float] = None
    progress: float = 0.0
    status_text: str = ""
    result: Optional[TranscriptResult] = None
    error: Optional[TranscriptionError] = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal


class JobRecord:
    """The one mutable job record. Only the StatusPoller writes to it."""

    def __init__(self, job_id: str, max_attempts: int, created_at: float) -> None:
        if not job_id:
            raise ValueError("job_id must be a non-empty string")
        self._snapshot = TranscriptionJob(
            id=job_id,
            state=JobState.SUBMITTED,
            attempts=0,
            max_attempts=max_attempts,
            created_at=created_at,
        )

    @property
    def state(self) -> JobState:
        return self._snapshot.state

    @property
    def attempts(self) -> int:
        return self._snapshot.attempts

    def snapshot(self) -> TranscriptionJob:
        return self._snapshot

    def record_attempt(self, polled_at: float) -> int:
        """Consume one unit of the attempt budget; return the new count."""
        current = self._snapshot
        if current.state.is_terminal:
            raise InvalidTransitionError(
                "Job {} is {}; no further polls allowed".format(
                    current.id, current.state.value
                )
            )
        if current.attempts >= current.max_attempts:
            raise InvalidTransitionError(
                "Job {} has used all {} attempts".format(current.id, current.max_attempts)
            )
        self._snapshot = dataclasses.replace(
            current,
            attempts=current.attempts + 1,
            last_polled_at=polled_at,
        )
        return self._snapshot.attempts

    def transition(
        self,
        state: JobState,
        *,
        progress: Optional[float] = None,
        status_text: Optional[str] = None,
        result: Optional[TranscriptResult] = None,
        error: Optional[TranscriptionError] = None,
    ) -> TranscriptionJob:
        """Move the job to ``state`` and return the new snapshot.

        RULES:
        - Raises InvalidTransitionError for edges outside the state graph
        - COMPLETED requires ``result``; FAILED/TIMED_OUT/CANCELLED require ``error``
        - Progress never decreases
        """
        current = self._snapshot
        allowed = _ALLOWED_TRANSITIONS.get(current.state, frozenset())
        if state not in allowed:
            raise InvalidTransitionError(
                "Cannot move job {} from {} to {}".format(
                    current.id, current.state.value, state.value
                )
            )
        if state is JobState.COMPLETED and result is None:
            raise InvalidTransitionError("A completed job needs a result")
        if state in (JobState.FAILED, JobState.TIMED_OUT, JobState.CANCELLED) and error is None:
            raise InvalidTransitionError("A {} job needs an error".format(state.value))
        if state is not JobState.COMPLETED and result is not None:
            raise InvalidTransitionError("Only a completed job carries a result")

        new_progress = current.progress
        if progress is not None:
            new_progress = max(current.progress, progress)

        self._snapshot = dataclasses.replace(
            current,
            state=state,
            progress=new_progress,
            status_text=status_text if status_text is not None else current.status_text,
            result=result,
            error=error,
        )
        return self._snapshot
