"""Tests for the command-line pipeline.

WHY: The CLI is what users actually run. Validation must happen before
any upload, every requested format must land on disk without clobbering
earlier output, and the exit code must tell scripts what happened.

HOW: The async pipeline is driven directly with a FakeService transport
and a zero poll interval. Files are written to pytest's tmp_path.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from sta_transcriber import cli
from sta_transcriber.config import TRANSCRIBE_API_URL
from sta_transcriber.core.cancel import CancellationToken


def _run(argv, service, auth_transport=None):
    args = cli.build_parser().parse_args(argv)
    return asyncio.run(cli._run_pipeline(
        args, transport=service.transport, auth_transport=auth_transport, interval=0,
    ))


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "talk.mp3"
    path.write_bytes(b"ID3 fake audio")
    return path


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:

    def test_defaults(self):
        args = cli.build_parser().parse_args(["talk.mp3"])
        assert args.input_file == "talk.mp3"
        assert args.formats is None
        assert args.output_dir is None
        assert args.api_url == TRANSCRIBE_API_URL
        assert not args.login
        assert not args.show_details
        assert not args.verbose

    def test_repeatable_format(self):
        args = cli.build_parser().parse_args(["a.mp3", "--format", "srt", "--format", "json"])
        assert args.formats == ["srt", "json"]

    def test_unknown_format_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["a.mp3", "--format", "docx"])


class TestResolveOutputPath:

    def test_free_name(self, tmp_path):
        assert cli._resolve_output_path("talk", "-transcript.srt", tmp_path) == tmp_path / "talk-transcript.srt"

    def test_conflict_gets_counter(self, tmp_path):
        (tmp_path / "talk-transcript.srt").write_text("old")
        (tmp_path / "talk-transcript-2.srt").write_text("old")
        assert cli._resolve_output_path("talk", "-transcript.srt", tmp_path) == tmp_path / "talk-transcript-3.srt"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:

    def test_missing_file(self, tmp_path, fake_service, capsys):
        assert _run([str(tmp_path / "nope.mp3")], fake_service) == 1
        assert "File not found" in capsys.readouterr().err
        assert fake_service.requests == []

    def test_unsupported_extension(self, tmp_path, fake_service, capsys):
        video = tmp_path / "clip.mkv"
        video.write_bytes(b"x")
        assert _run([str(video)], fake_service) == 1
        assert "Unsupported file type '.mkv'" in capsys.readouterr().err
        assert fake_service.requests == []

    def test_missing_output_dir(self, audio_file, tmp_path, fake_service):
        code = _run([str(audio_file), "--output-dir", str(tmp_path / "missing")], fake_service)
        assert code == 1
        assert fake_service.requests == []


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TestPipeline:

    def test_writes_each_format(self, audio_file, tmp_path, fake_service, capsys):
        fake_service.statuses = [{"status": "processing"}, {
            "status": "completed", "text": "Hello world. Bye now.",
            "language_code": "en", "confidence": 0.9,
        }]
        code = _run(
            [str(audio_file), "--format", "srt", "--format", "vtt", "--format", "json"],
            fake_service,
        )
        assert code == 0

        srt = (tmp_path / "talk-transcript.srt").read_text(encoding="utf-8")
        assert srt.startswith("1\n00:00:00,000 --> 00:00:03,000\nHello world.")
        vtt = (tmp_path / "talk-transcript.vtt").read_text(encoding="utf-8")
        assert vtt.startswith("WEBVTT\n\n")
        data = json.loads((tmp_path / "talk-transcript.json").read_text(encoding="utf-8"))
        assert data["fileName"] == "talk.mp3"
        assert data["languageCode"] == "en"

        err = capsys.readouterr().err
        assert "Uploading file..." in err
        assert "Processing... (0s elapsed) [" in err
        assert "Language: EN" in err
        assert "Confidence: 90%" in err
        assert "Done! Processing time: 0 sec" in err
        assert "Saved 3 file(s)" in err

    def test_output_dir_and_conflicts(self, audio_file, tmp_path, fake_service):
        out = tmp_path / "out"
        out.mkdir()
        (out / "talk-transcript.srt").write_text("previous run")
        code = _run([str(audio_file), "--format", "srt", "--output-dir", str(out)], fake_service)
        assert code == 0
        assert (out / "talk-transcript.srt").read_text() == "previous run"
        assert (out / "talk-transcript-2.srt").exists()

    def test_duplicate_formats_written_once(self, audio_file, tmp_path, fake_service):
        _run([str(audio_file), "--format", "srt", "--format", "srt"], fake_service)
        assert not (tmp_path / "talk-transcript-2.srt").exists()

    def test_default_format_is_pdf(self, audio_file, tmp_path, fake_service):
        pytest.importorskip("reportlab")
        assert _run([str(audio_file)], fake_service) == 0
        assert (tmp_path / "talk-transcript.pdf").read_bytes().startswith(b"%PDF")

    def test_upload_rejected(self, audio_file, fake_service, capsys):
        fake_service.upload = (401, {"detail": "token expired"})
        assert _run([str(audio_file), "--format", "srt"], fake_service) == 1
        err = capsys.readouterr().err
        assert "Error: You are not authorized" in err
        assert "Technical details" not in err

    def test_show_details(self, audio_file, fake_service, capsys):
        fake_service.upload = (401, {"detail": "token expired"})
        _run([str(audio_file), "--format", "srt", "--show-details"], fake_service)
        err = capsys.readouterr().err
        assert "Technical details" in err
        assert "token expired" in err

    def test_remote_error(self, audio_file, fake_service, capsys):
        fake_service.statuses = [{"status": "error", "error": "Audio has no speech"}]
        assert _run([str(audio_file), "--format", "srt"], fake_service) == 1
        assert "Error: Audio has no speech" in capsys.readouterr().err

    def test_cancelled(self, audio_file, fake_service, monkeypatch, capsys):
        def _cancelled_token():
            token = CancellationToken()
            token.cancel()
            return token

        monkeypatch.setattr(cli, "CancellationToken", _cancelled_token)
        assert _run([str(audio_file), "--format", "srt"], fake_service) == 130
        assert "Cancelled by user." in capsys.readouterr().err


class TestLogin:

    def test_login_then_transcribe(self, audio_file, fake_service, monkeypatch, capsys):
        monkeypatch.setenv("TRANSCRIBE_EMAIL", "ana@example.com")
        monkeypatch.setenv("TRANSCRIBE_PASSWORD", "secret")
        auth = httpx.MockTransport(lambda r: httpx.Response(200, json={
            "success": True,
            "data": {"token": "tok", "user": {"email": "ana@example.com"}},
        }))
        assert _run([str(audio_file), "--format", "srt", "--login"], fake_service, auth) == 0
        assert "Signed in as ana@example.com" in capsys.readouterr().err

    def test_login_rejected(self, audio_file, fake_service, monkeypatch, capsys):
        monkeypatch.setenv("TRANSCRIBE_EMAIL", "ana@example.com")
        monkeypatch.setenv("TRANSCRIBE_PASSWORD", "wrong")
        auth = httpx.MockTransport(lambda r: httpx.Response(401, json={"success": False}))
        assert _run([str(audio_file), "--format", "srt", "--login"], fake_service, auth) == 1
        assert "Incorrect email or password" in capsys.readouterr().err
        assert fake_service.requests == []

    def test_login_without_credentials(self, audio_file, fake_service, monkeypatch, capsys):
        monkeypatch.delenv("TRANSCRIBE_EMAIL", raising=False)
        monkeypatch.delenv("TRANSCRIBE_PASSWORD", raising=False)
        assert _run([str(audio_file), "--login"], fake_service) == 1
        assert "TRANSCRIBE_EMAIL" in capsys.readouterr().err


class TestMain:

    def test_returns_exit_code(self, tmp_path):
        assert cli.main([str(tmp_path / "missing.wav")]) == 1
