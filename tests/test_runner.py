"""Tests for the wake → submit → poll orchestration."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from sta_transcriber.api.client import TranscriptionClient
from sta_transcriber.api.errors import (
    ClientInputError,
    ConnectivityError,
    RemoteJobError,
    TranscriptionError,
)
from sta_transcriber.core.job import JobState
from sta_transcriber.core.runner import TranscriptionRunner


def _transcribe(service, **runner_kwargs):
    """Run one transcription; return (runner, result, error, status lines)."""
    statuses = []

    async def _run():
        async with TranscriptionClient(base_url="http://test", transport=service.transport) as client:
            runner = TranscriptionRunner(
                client, interval=0, on_status=statuses.append, **runner_kwargs
            )
            try:
                return runner, await runner.transcribe(b"audio", "talk.mp3"), None
            except TranscriptionError as exc:
                return runner, None, exc

    runner, result, error = asyncio.run(_run())
    return runner, result, error, statuses


class TestTranscriptionRunner:

    def test_full_pipeline(self, fake_service):
        fake_service.statuses = [{"status": "processing"}, {
            "status": "completed", "text": "Done.", "language_code": "es", "confidence": 0.8,
        }]
        runner, result, error, statuses = _transcribe(fake_service)

        assert error is None
        assert result.text == "Done."
        assert result.language_code == "es"
        assert statuses == ["Connecting to the server...", "Uploading file..."]
        assert [r.url.path for r in fake_service.requests] == [
            "/health", "/transcribe-async", "/status/job-123", "/status/job-123",
        ]
        assert runner.last_job.state is JobState.COMPLETED
        assert runner.last_job.id == "job-123"

    def test_duration_measured_from_submission(self, fake_service):
        _, result, _, _ = _transcribe(fake_service)
        assert result.duration_seconds >= 0

    def test_wake_failure_does_not_stop_job(self, fake_service):
        fake_service.health = httpx.ConnectError("sleeping")
        _, result, error, _ = _transcribe(fake_service)
        assert error is None
        assert result.text == "Hello world. Bye now."

    def test_upload_rejected_never_polls(self, fake_service):
        fake_service.upload = (401, {"error": "unauthorized"})
        runner, result, error, _ = _transcribe(fake_service)
        assert isinstance(error, ClientInputError)
        assert error.status_code == 401
        assert result is None
        assert fake_service.count("/status/") == 0
        assert runner.last_job is None

    def test_upload_network_failure(self, fake_service):
        fake_service.upload = httpx.ConnectError("refused")
        _, _, error, _ = _transcribe(fake_service)
        assert isinstance(error, ConnectivityError)
        assert fake_service.count("/status/") == 0

    def test_remote_failure_keeps_final_snapshot(self, fake_service):
        fake_service.statuses = [{"status": "error", "error": "Bad audio"}]
        runner, _, error, _ = _transcribe(fake_service)
        assert isinstance(error, RemoteJobError)
        assert runner.last_job.state is JobState.FAILED
        assert runner.last_job.error is error

    def test_updates_forwarded(self, fake_service):
        updates = []
        _transcribe(fake_service, on_update=updates.append)
        assert updates[0].state is JobState.PROCESSING
        assert updates[-1].state is JobState.COMPLETED

    def test_each_call_is_a_fresh_job(self, fake_service):
        fake_service.statuses = [{"status": "completed", "text": "one"}]

        async def _run():
            async with TranscriptionClient(
                base_url="http://test", transport=fake_service.transport
            ) as client:
                runner = TranscriptionRunner(client, interval=0)
                first = await runner.transcribe(b"a", "a.mp3")
                fake_service.upload = (500, "down")
                with pytest.raises(TranscriptionError):
                    await runner.transcribe(b"b", "b.mp3")
                return first, runner.last_job

        first, last_job = asyncio.run(_run())
        assert first.text == "one"
        assert last_job is None
