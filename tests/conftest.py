"""Shared test fixtures for the sta_transcriber test suite.

WHY: The client, poller, runner, and CLI tests all talk to the same three
service endpoints. A single scripted fake service keeps every module's
view of the wire format identical and avoids real network traffic.

HOW: FakeService is an httpx.MockTransport handler. Tests script the
health, upload, and status answers; each status answer is consumed in
order and the last one repeats. An answer can be a dict (HTTP 200 JSON),
a (status_code, body) tuple, an exception instance to raise, or an async
callable for slow responses.

RULES:
- No test touches the real services
- Every recorded request is kept in FakeService.requests for assertions
- Sample transcript data is shared through fixtures, not module globals
"""

from __future__ import annotations

import asyncio
from typing import Any, List

import httpx
import pytest

from sta_transcriber.core.job import TranscriptResult

SAMPLE_TEXT = "Hello world. Bye now."
JOB_ID = "job-123"


def _build_response(answer: Any) -> httpx.Response:
    if isinstance(answer, httpx.Response):
        return answer
    if isinstance(answer, dict):
        return httpx.Response(200, json=answer)
    status_code, body = answer
    if isinstance(body, (dict, list)):
        return httpx.Response(status_code, json=body)
    return httpx.Response(status_code, text=body)


class FakeService:
    """Scripted stand-in for the transcription service."""

    def __init__(self) -> None:
        self.health: Any = {"status": "ok"}
        self.upload: Any = (202, {"transcript_id": JOB_ID})
        self.statuses: List[Any] = [{"status": "completed", "text": SAMPLE_TEXT}]
        self.requests: List[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/health":
            answer = self.health
        elif path == "/transcribe-async":
            answer = self.upload
        elif path.startswith("/status/"):
            answer = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        else:
            return httpx.Response(404, json={"message": "not found"})

        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            answer = await answer(request)
        return _build_response(answer)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, prefix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.startswith(prefix))


def slow(delay: float, answer: Any):
    """Build a status answer that only arrives after ``delay`` seconds."""

    async def _respond(request: httpx.Request) -> Any:
        await asyncio.sleep(delay)
        return answer

    return _respond


@pytest.fixture
def fake_service():
    """A fresh FakeService that completes on the first poll."""
    return FakeService()


@pytest.fixture
def sample_result():
    """A completed transcript with full metadata."""
    return TranscriptResult(
        text=SAMPLE_TEXT,
        language_code="en",
        confidence=0.93,
        duration_seconds=187.4,
    )


@pytest.fixture
def slow_answer():
    """Factory for status answers delayed past a short deadline."""
    return slow
