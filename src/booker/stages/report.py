from __future__ import annotations

import sys
from typing import Dict, List, Optional, Protocol, TextIO

from booker.core.model import SEVERITY, BuildEvent, BuildReport, Level
from booker.core.paths import get_basename

EMOJI = {
    Level.INFO: "ℹ️",
    Level.SUCCESS: "✅",
    Level.WARNING: "⚠️",
    Level.ERROR: "❌",
}

class Notice(Protocol):
    def notify(self, message: str) -> None: ...

class StreamNotice:
    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout

    def notify(self, message: str) -> None:
        self.stream.write(message + "\n")
        self.stream.flush()

class RecordingNotice:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)

def resolve_file_label(path: str, frontmatter=None) -> str:
    title = frontmatter.get("title") if isinstance(frontmatter, dict) else None
    if isinstance(title, str) and title.strip():
        return title.strip()
    return get_basename(path)

class UserMessagePresenter:
    def __init__(self, notice: Notice) -> None:
        self.notice = notice

    def show(self, level: Level, message: str, file_label: Optional[str] = None) -> None:
        label = f"[{file_label}] " if file_label else ""
        self.notice.notify(f"{EMOJI[level]} {label}{message}")

    def show_warning(self, message: str) -> None:
        self.show(Level.WARNING, message)

    def show_success(self, message: str) -> None:
        self.show(Level.SUCCESS, message)

class BuildReporter:
    """
    Collects notices for one bundle level.

    record() counts toward the roll-up; announce() only notifies.
    """

    def __init__(self, presenter: UserMessagePresenter) -> None:
        self.presenter = presenter
        self.events: List[BuildEvent] = []
        self.counts: Dict[Level, int] = {Level.SUCCESS: 0, Level.WARNING: 0, Level.ERROR: 0}

    def record(self, level: Level, file_label: str, message: str, notify: bool = True) -> None:
        if level in self.counts:
            self.counts[level] += 1
        self._emit(level, file_label, message, notify)

    def announce(self, level: Level, file_label: str, message: str) -> None:
        self._emit(level, file_label, message, True)

    def _emit(self, level: Level, file_label: str, message: str, notify: bool) -> None:
        self.events.append(BuildEvent(level=level, file_label=file_label, message=message))
        if notify:
            self.presenter.show(level, message, file_label)

    @property
    def status(self) -> Level:
        worst = Level.SUCCESS
        for level, n in self.counts.items():
            if n and SEVERITY[level] > SEVERITY[worst]:
                worst = level
        return worst

    def report(self) -> BuildReport:
        return BuildReport(status=self.status, counts=dict(self.counts), events=list(self.events))

def format_counts(counts: Dict[Level, int]) -> str:
    return (
        f"✅{counts.get(Level.SUCCESS, 0)} "
        f"⚠️{counts.get(Level.WARNING, 0)} "
        f"❌{counts.get(Level.ERROR, 0)}"
    )

_ROLLUP = {
    Level.SUCCESS: "Completed",
    Level.WARNING: "Completed with warnings",
    Level.ERROR: "Completed with errors",
}

def rollup_message(status: Level, counts: Dict[Level, int]) -> str:
    return f"{_ROLLUP[status]} ({format_counts(counts)})"
