"""Status polling state machine for one transcription job.

WHY: The service answers "processing" until the transcript is ready,
which can take anywhere from seconds to many minutes. The client must
keep asking — but within a fixed budget, with a deadline on every call,
tolerating the odd dropped request, and ending in exactly one terminal
state that callers can act on.

HOW: StatusPoller owns the job's JobRecord. ``run()`` is a plain async
loop: record an attempt, query the status under the per-poll deadline,
branch on the outcome, then await the interval before the next attempt.
Delays are awaited through the cancellation token, so memory stays flat
over hundreds of attempts and a cancel stops the loop at the next
suspend point. Each state change publishes an immutable snapshot.

RULES:
- One attempt every ``interval`` seconds (3s), at most ``max_attempts`` (300)
- Every scheduled attempt consumes budget, including ones that fail in transport
- Timeout / transport failure: retry while attempts < max, else TIMED_OUT
  (ConnectivityError)
- "completed" → COMPLETED, progress 100, returns the TranscriptResult
- "error" → FAILED with the service's message verbatim (RemoteJobError)
- "processing" at the last attempt → TIMED_OUT (BudgetExceeded)
- Unreadable response → FAILED (ResponseFormatError), never retried
- Cancellation → CANCELLED (JobCancelledError)
- At most one request in flight; attempts never overlap
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Optional

import httpx

from sta_transcriber.api.client import TranscriptionClient
from sta_transcriber.api.errors import (
    BudgetExceeded,
    ConnectivityError,
    JobCancelledError,
    RemoteJobError,
    ResponseFormatError,
    TranscriptionError,
)
from sta_transcriber.api.models import RemoteStatus, StatusResponse
from sta_transcriber.config import MAX_POLL_ATTEMPTS, POLL_INTERVAL_S
from sta_transcriber.core.cancel import CancellationToken
from sta_transcriber.core.job import (
    JobRecord,
    JobState,
    TranscriptionJob,
    TranscriptResult,
)
from sta_transcriber.core.progress import ProgressEstimator, format_elapsed

logger = logging.getLogger(__name__)

_POLL_CONNECTIVITY_MESSAGE = "Timeout: could not connect to the server"
_BUDGET_MESSAGE = (
    "Timeout: the transcription is taking too long. Try a shorter audio file."
)
_REMOTE_ERROR_FALLBACK = "Transcription failed"


class StatusPoller:
    """Drives one job from SUBMITTED to a terminal state.

    WHY: Collapses the polling loop, attempt budget, progress estimate,
    and error classification into one owner of the job record, so no
    other component can put the job into an inconsistent state.

    HOW: Construct with a client and the job id from submit(), then
    ``await poller.run(cancel)``. Read ``poller.snapshot`` (or subscribe
    via ``on_update``) for progress; the snapshot is immutable.

    RULES:
    - ``run()`` may be called once per poller
    - ``started_at`` is a time.monotonic() reading taken when the job was
      submitted; it anchors TranscriptResult.duration_seconds
    - ``on_update`` receives every new snapshot; exceptions it raises are
      logged and do not affect the job
    - ``sleep`` replaces the wait between attempts; it is awaited with the
      interval and must itself honour cancellation (default: the token)
    """

    def __init__(
        self,
        client: TranscriptionClient,
        job_id: str,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        interval: float = POLL_INTERVAL_S,
        started_at: float | None = None,
        on_update: Callable[[TranscriptionJob], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._client = client
        self.interval = interval
        self._started_at = started_at if started_at is not None else time.monotonic()
        self._on_update = on_update
        self._sleep = sleep
        self._progress = ProgressEstimator(max_attempts=max_attempts)
        self._record = JobRecord(job_id, max_attempts=max_attempts, created_at=time.time())

    @property
    def job_id(self) -> str:
        return self._record.snapshot().id

    @property
    def max_attempts(self) -> int:
        return self._progress.max_attempts

    @property
    def snapshot(self) -> TranscriptionJob:
        return self._record.snapshot()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def run(self, cancel: CancellationToken | None = None) -> TranscriptResult:
        """Poll until the job reaches a terminal state.

        Returns:
            The TranscriptResult when the job completes.

        Raises:
            ConnectivityError: the last attempt failed in transport.
            BudgetExceeded: still processing after the last attempt.
            RemoteJobError: the service reported the job as failed.
            ResponseFormatError: a status response could not be read.
            JobCancelledError: the token was cancelled.
        """
        cancel = cancel or CancellationToken()
        if self._record.state is not JobState.SUBMITTED:
            raise RuntimeError(
                "Job {} was already polled (state: {})".format(
                    self.job_id, self._record.state.value
                )
            )

        logger.info("Polling job %s every %.1fs (max %d attempts)",
                    self.job_id, self.interval, self.max_attempts)
        try:
            cancel.raise_if_cancelled()
            self._publish(JobState.PROCESSING, status_text="Transcription started, processing...")
            while True:
                result = await self._attempt(cancel)
                if result is not None:
                    return result
                if self._sleep is not None:
                    cancel.raise_if_cancelled()
                    await self._sleep(self.interval)
                else:
                    await cancel.sleep(self.interval)
        except JobCancelledError as exc:
            if not self._record.state.is_terminal:
                self._finish(JobState.CANCELLED, exc)
            raise

    async def _attempt(self, cancel: CancellationToken) -> Optional[TranscriptResult]:
        """Run one poll attempt; return the result when the job completed.

        Returns None when another attempt should be scheduled. Raises the
        classified error when the job ended in FAILED or TIMED_OUT.
        """
        attempts = self._record.record_attempt(time.time())
        self._publish(JobState.PROCESSING, progress=self._progress.advance(attempts))

        poll_started = time.monotonic()
        try:
            status = await self._client.get_status(self.job_id, cancel=cancel)
        except (asyncio.TimeoutError, httpx.TransportError) as exc:
            logger.warning(
                "[poll %d/%d] %s for job %s",
                attempts, self.max_attempts, exc.__class__.__name__, self.job_id,
            )
            if attempts < self.max_attempts:
                return None
            raise self._finish(
                JobState.TIMED_OUT,
                ConnectivityError(_POLL_CONNECTIVITY_MESSAGE),
            ) from exc
        except ResponseFormatError as exc:
            raise self._finish(JobState.FAILED, exc)
        except httpx.HTTPError as exc:
            raise self._finish(
                JobState.FAILED,
                ResponseFormatError("Could not read the job status"),
            ) from exc

        logger.debug(
            "[poll %d/%d] %s in %.2fs",
            attempts, self.max_attempts, status.status.value,
            time.monotonic() - poll_started,
        )
        return self._handle_status(status, attempts)

    def _handle_status(
        self, status: StatusResponse, attempts: int
    ) -> Optional[TranscriptResult]:
        if status.status is RemoteStatus.COMPLETED:
            result = TranscriptResult(
                text=status.text,
                language_code=status.language_code,
                confidence=status.confidence,
                duration_seconds=time.monotonic() - self._started_at,
            )
            self._publish(
                JobState.COMPLETED,
                progress=self._progress.complete(),
                status_text="Transcription completed",
                result=result,
            )
            logger.info(
                "Job %s completed after %d attempt(s) (%.2fs)",
                self.job_id, attempts, result.duration_seconds,
            )
            return result

        if status.status is RemoteStatus.ERROR:
            raise self._finish(
                JobState.FAILED,
                RemoteJobError(status.error or _REMOTE_ERROR_FALLBACK, raw_payload=status.raw),
            )

        # Still processing
        if attempts >= self.max_attempts:
            raise self._finish(
                JobState.TIMED_OUT,
                BudgetExceeded(_BUDGET_MESSAGE, raw_payload=status.raw),
            )

        elapsed = format_elapsed(attempts * self.interval)
        self._publish(
            JobState.PROCESSING,
            status_text="Processing... ({} elapsed)".format(elapsed),
        )
        return None

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def _finish(self, state: JobState, error: TranscriptionError) -> TranscriptionError:
        """Move to a failure terminal state and return the error to raise."""
        self._progress.freeze()
        self._publish(state, status_text=error.message, error=error)
        logger.error("Job %s ended %s: %s", self.job_id, state.value, error.message)
        return error

    def _publish(self, state: JobState, **changes) -> None:  # noqa: ANN003
        snapshot = self._record.transition(state, **changes)
        if self._on_update is None:
            return
        try:
            self._on_update(snapshot)
        except Exception:
            logger.exception("Job update listener failed for %s", snapshot.id)
