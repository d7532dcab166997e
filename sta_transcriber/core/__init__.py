"""Job lifecycle: state, polling, progress, and cancellation.

WHY: The core package holds the logic that turns one upload into one
terminal outcome. It is independent of how the result is presented.

HOW: job.py defines the tagged state and frozen snapshots, poller.py
drives a job to a terminal state, progress.py estimates completion,
cancel.py carries the cancellation token, runner.py chains wake, submit,
and poll.

RULES:
- Only the StatusPoller mutates a job record
- Nothing here imports from the CLI or export layers
"""
