"""STA Transcriber — async transcription job client and transcript exporter.

WHY: The remote transcription service accepts an audio upload, runs the
job in the background, and only reports the result when polled. Callers
need one package that wakes the service, submits the audio, tracks the job
to a terminal state, and turns the transcript into downloadable files
(PDF, SRT, VTT, JSON).

HOW: Three-stage pipeline — submit (API client), track (status poller
state machine), export (formatters + exporter). Each stage is
independently testable.

RULES:
- All HTTP goes through sta_transcriber.api
- The poller is the only writer of job state; everyone else reads snapshots
- Formatters are pure functions of the transcript and its metadata
"""

__version__ = "0.1.0"
