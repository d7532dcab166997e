"""End-to-end job orchestration: wake → submit → poll.

WHY: The CLI (and any other front end) wants one call that takes audio
bytes and returns a transcript or a classified error, while still
reporting human-readable status and progress along the way.

HOW: TranscriptionRunner holds an open TranscriptionClient. ``transcribe()``
wakes the service (best effort), uploads the audio, then hands the job id
to a fresh StatusPoller. Every call shares one cancellation token. Each
call to ``transcribe()`` starts a brand-new job; nothing is carried over.

RULES:
- Upload errors end the job before any polling starts
- Status strings go to ``on_status``; job snapshots go to ``on_update``
- ``last_job`` holds the final snapshot of the most recent job (or None
  if the upload never produced a job id)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from sta_transcriber.api.client import TranscriptionClient
from sta_transcriber.config import MAX_POLL_ATTEMPTS, POLL_INTERVAL_S
from sta_transcriber.core.cancel import CancellationToken
from sta_transcriber.core.job import TranscriptionJob, TranscriptResult
from sta_transcriber.core.poller import StatusPoller

logger = logging.getLogger(__name__)


class TranscriptionRunner:
    """Runs one transcription job at a time against an open client."""

    def __init__(
        self,
        client: TranscriptionClient,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        interval: float = POLL_INTERVAL_S,
        on_status: Callable[[str], None] | None = None,
        on_update: Callable[[TranscriptionJob], None] | None = None,
    ) -> None:
        self._client = client
        self.max_attempts = max_attempts
        self.interval = interval
        self._on_status = on_status
        self._on_update = on_update
        self.last_job: TranscriptionJob | None = None
        self._poller: StatusPoller | None = None

    def _status(self, message: str) -> None:
        if self._on_status:
            self._on_status(message)

    def _forward_update(self, snapshot: TranscriptionJob) -> None:
        self.last_job = snapshot
        if self._on_update:
            self._on_update(snapshot)

    async def transcribe(
        self,
        audio_bytes: bytes,
        filename: str,
        cancel: CancellationToken | None = None,
    ) -> TranscriptResult:
        """Transcribe ``audio_bytes`` and return the completed transcript.

        Raises:
            ConnectivityError / ClientInputError / ServerFault / UploadError:
                the upload failed; no job was created.
            BudgetExceeded / RemoteJobError / ResponseFormatError /
            ConnectivityError / JobCancelledError: the job ended badly.
        """
        cancel = cancel or CancellationToken()
        self.last_job = None
        self._poller = None
        started = time.monotonic()

        self._status("Connecting to the server...")
        await self._client.wake(cancel=cancel)

        self._status("Uploading file...")
        job_id = await self._client.submit(audio_bytes, filename, cancel=cancel)
        logger.debug("Upload of %s produced job %s", filename, job_id)

        self._poller = StatusPoller(
            self._client,
            job_id,
            max_attempts=self.max_attempts,
            interval=self.interval,
            started_at=started,
            on_update=self._forward_update,
        )
        self.last_job = self._poller.snapshot
        try:
            return await self._poller.run(cancel)
        finally:
            self.last_job = self._poller.snapshot
