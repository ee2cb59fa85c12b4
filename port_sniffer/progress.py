from __future__ import annotations

import sys
from typing import List, Optional, TextIO

from .models import Progress

PROGRESS_EVERY = 100


class ProgressSink:
    """
    Receives progress snapshots from the scanner.

    update() is called while the scanner holds its completion lock, so
    snapshots arrive in counter order and must not block for long.
    """

    def update(self, progress: Progress) -> None:
        raise NotImplementedError


class NullProgress(ProgressSink):
    def update(self, progress: Progress) -> None:
        pass


class CollectingProgress(ProgressSink):
    """Keeps every snapshot in memory."""

    def __init__(self) -> None:
        self.updates: List[Progress] = []

    def update(self, progress: Progress) -> None:
        self.updates.append(progress)


class TerminalProgress(ProgressSink):
    """Rewrites a single terminal line in place using carriage returns."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def update(self, progress: Progress) -> None:
        self.stream.write("\r" + format_progress(progress))
        self.stream.flush()


def should_report(completed: int, total: int, every: int = PROGRESS_EVERY) -> bool:
    return (every > 0 and completed % every == 0) or completed == total


def compute_progress(completed: int, total: int, elapsed_s: float) -> Progress:
    percent = completed / total * 100.0 if total else 100.0
    per_port = elapsed_s / completed if completed else 0.0
    eta_s = int(per_port * (total - completed))
    return Progress(
        completed=completed,
        total=total,
        percent=percent,
        elapsed_s=elapsed_s,
        eta_s=eta_s,
    )


def format_progress(p: Progress) -> str:
    return (
        f"{p.percent:.1f}% complete. ETA: {p.eta_s // 60}m {p.eta_s % 60}s"
        f" | Ports checked: {p.completed}     "
    )
