"""Command-line interface for the STA transcriber.

WHY: Users need a simple way to transcribe an audio file from the
terminal. The CLI wires together the full pipeline — file validation,
optional sign-in, wake/upload/poll against the transcription service,
export in the chosen formats, and file saving — behind a single command.

HOW: Uses argparse to accept an audio file, the export formats, and the
output directory. Runs the async pipeline via asyncio.run(). Status and
progress lines go to stderr; artifacts are saved next to the source (or to
--output-dir). Ctrl-C cancels the running job through its cancellation
token.

RULES:
- Positional argument: audio file path
- Validates the extension against SUPPORTED_AUDIO_FORMATS before any request
- --format may be given several times (default: text, which is a PDF)
- Output naming: {stem}-transcript.{ext}, numeric suffix for conflicts
  (interview-transcript-2.pdf)
- Status output goes to stderr (not stdout)
- Exit codes: 0 success, 1 error, 130 cancelled
- --show-details prints the technical payload attached to an error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from sta_transcriber.api.auth import AuthClient
from sta_transcriber.api.client import TranscriptionClient
from sta_transcriber.api.errors import JobCancelledError, TranscriptionError
from sta_transcriber.config import (
    POLL_INTERVAL_S,
    SUPPORTED_AUDIO_FORMATS,
    TRANSCRIBE_API_URL,
    load_credentials,
)
from sta_transcriber.core.cancel import CancellationToken
from sta_transcriber.core.job import JobState, TranscriptionJob
from sta_transcriber.core.progress import format_duration
from sta_transcriber.core.runner import TranscriptionRunner
from sta_transcriber.export.exporter import FORMAT_SPECS, Exporter
from sta_transcriber.formatters.base import ExportFormat

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


class _ProgressPrinter:
    """Prints one line per change of a job's status text or progress."""

    def __init__(self) -> None:
        self._last: Optional[str] = None

    def __call__(self, job: TranscriptionJob) -> None:
        if job.state is not JobState.PROCESSING:
            return
        line = "{} [{:.0f}%]".format(job.status_text, job.progress)
        if line != self._last:
            self._last = line
            _status(line)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding numeric suffix on conflict.

    WHY: Users may transcribe the same file more than once. Overwriting
    previous output would lose work.

    RULES:
    - First attempt: {stem}{suffix} (e.g. interview-transcript.pdf)
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. interview-transcript-2.pdf)
    - Counter starts at 2 and increments

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _print_error(error: TranscriptionError, show_details: bool) -> None:
    print("Error: {}".format(error.message), file=sys.stderr)
    if show_details and error.raw_payload is not None:
        details = error.raw_payload
        if not isinstance(details, str):
            details = json.dumps(details, indent=2, ensure_ascii=False, default=str)
        print("Technical details:\n{}".format(details), file=sys.stderr)


def _install_interrupt(cancel: CancellationToken) -> bool:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.cancel)
    except (NotImplementedError, RuntimeError, ValueError):
        # No loop signal handlers here (e.g. Windows); KeyboardInterrupt
        # still reaches main().
        return False
    return True


async def _run_pipeline(
    args: argparse.Namespace,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    auth_transport: Optional[httpx.AsyncBaseTransport] = None,
    interval: float = POLL_INTERVAL_S,
) -> int:
    """Execute the full transcription pipeline and return the exit code.

    WHY: This is the async core of the CLI — it orchestrates all steps
    from sign-in through export and saving.

    RULES:
    - Validate the file and output directory before any request
    - Sign in first when --login is given
    - Status messages to stderr at each step
    - Save each requested format with conflict avoidance
    """
    input_path = Path(args.input_file).resolve()

    if not input_path.is_file():
        print("Error: File not found: {}".format(input_path), file=sys.stderr)
        return 1

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_AUDIO_FORMATS:
        print(
            "Error: Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_AUDIO_FORMATS))
            ),
            file=sys.stderr,
        )
        return 1

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        print("Error: Output directory does not exist: {}".format(output_dir), file=sys.stderr)
        return 1

    # De-duplicate while keeping the order the user gave
    formats: List[ExportFormat] = []
    for value in args.formats or [ExportFormat.TEXT.value]:
        fmt = ExportFormat(value)
        if fmt not in formats:
            formats.append(fmt)

    logger.debug(
        "Input %s, formats %s, output dir %s",
        input_path, ", ".join(f.value for f in formats), output_dir,
    )

    cancel = CancellationToken()
    interrupt_installed = _install_interrupt(cancel)

    try:
        if args.login:
            email, password = load_credentials()
            _status("Signing in...")
            session = await AuthClient(transport=auth_transport).login(email, password)
            _status("  Signed in as {}".format(session.user.get("email", email)))

        audio_bytes = input_path.read_bytes()

        async with TranscriptionClient(base_url=args.api_url, transport=transport) as client:
            runner = TranscriptionRunner(
                client,
                interval=interval,
                on_status=_status,
                on_update=_ProgressPrinter(),
            )
            result = await runner.transcribe(audio_bytes, input_path.name, cancel=cancel)

        _status("Transcription completed")
        if result.language_code:
            _status("  Language: {}".format(result.language_code.upper()))
        if result.confidence is not None:
            _status("  Confidence: {:.0f}%".format(result.confidence * 100))

        _status("Exporting...")
        exporter = Exporter()
        saved_files: List[Path] = []
        for fmt in formats:
            artifact = exporter.export(fmt, result, input_path.name)
            _, extension = FORMAT_SPECS[fmt]
            path = _resolve_output_path(input_path.stem, "-transcript.{}".format(extension), output_dir)
            path.write_bytes(artifact.data)
            saved_files.append(path)
            _status("  Saved: {} ({})".format(path.name, artifact.mime_type))

        _status("")
        _status("Done! Processing time: {}".format(format_duration(result.duration_seconds)))
        _status("Saved {} file(s) to {}".format(len(saved_files), output_dir))
        return 0

    except JobCancelledError:
        _status("\nCancelled by user.")
        return 130
    except TranscriptionError as e:
        _print_error(e, args.show_details)
        return 1
    except (ValueError, OSError) as e:
        # Config errors (missing credentials, bad env values) and file I/O
        print("Error: {}".format(e), file=sys.stderr)
        return 1
    finally:
        if interrupt_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable — tests can inspect the parser without running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="sta_transcriber",
        description="Transcribe an audio file with the STA transcription service "
                    "and export it as PDF text, SRT, VTT, or JSON.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the audio file to transcribe.",
    )

    parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        choices=[f.value for f in ExportFormat],
        default=None,
        help="Export format. Can be specified multiple times (default: text).",
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--api-url",
        default=TRANSCRIBE_API_URL,
        help="Transcription service base URL (default: %(default)s).",
    )

    parser.add_argument(
        "--login",
        action="store_true",
        help="Sign in first with TRANSCRIBE_EMAIL / TRANSCRIBE_PASSWORD from .env.",
    )

    parser.add_argument(
        "--show-details",
        action="store_true",
        help="Print technical details when an error occurs.",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Returns the process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )
    try:
        return asyncio.run(_run_pipeline(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
