"""Structured event logging for diagnostics and the inn's daily journal."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Optional, TextIO


@dataclass
class LogEntry:
    """A single log entry."""

    day: int
    category: str
    message: str
    data: dict = field(default_factory=dict)


class SimLogger:
    """Structured logging with categories and verbosity control."""

    # Category constants
    TIME = "TIME"
    RESOURCE = "RESOURCE"
    MARKET = "MARKET"
    CRAFTING = "CRAFTING"
    INTERACTION = "INTERACTION"
    PERSISTENCE = "PERSISTENCE"
    EVENT = "EVENT"
    ERROR = "ERROR"

    _VERBOSITY_MAP: dict[str, int] = {
        ERROR: 0,
        PERSISTENCE: 0,
        EVENT: 0,
        TIME: 1,
        CRAFTING: 1,
        MARKET: 2,
        INTERACTION: 2,
        RESOURCE: 3,
    }

    # Categories that make it into the daily journal
    JOURNAL_CATEGORIES = (EVENT, CRAFTING, MARKET)

    def __init__(
        self,
        verbosity: int = 1,
        log_file: Optional[str] = None,
        stdout: bool = True,
    ) -> None:
        """
        verbosity levels:
            0 = only errors, persistence and events
            1 = + time boundaries and crafting
            2 = + market trades and interactions
            3 = everything (every resource mutation)
        """
        self.verbosity = verbosity
        self.day: int = 0  # days elapsed since the game started, set by the engine
        self._buffer: list[LogEntry] = []
        self._all_entries: list[LogEntry] = []
        self._file: Optional[TextIO] = None
        self._stdout = stdout

        if log_file:
            os.makedirs(os.path.dirname(log_file) if os.path.dirname(log_file) else ".", exist_ok=True)
            self._file = open(log_file, "w", encoding="utf-8")

    @classmethod
    def silent(cls) -> SimLogger:
        """A logger that records entries but never prints."""
        return cls(verbosity=-1, stdout=False)

    def log(
        self,
        category: str,
        message: str,
        day: Optional[int] = None,
        **data,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            day=self.day if day is None else day,
            category=category,
            message=message,
            data=data,
        )
        self._buffer.append(entry)

    def flush_day(self, day: Optional[int] = None) -> None:
        """Write buffered logs."""
        for entry in self._buffer:
            required_verbosity = self._VERBOSITY_MAP.get(entry.category, 1)
            if required_verbosity <= self.verbosity:
                line = f"[Day {entry.day:>4}] [{entry.category:<11}] {entry.message}"
                if self._stdout:
                    print(line)
                if self._file:
                    self._file.write(line + "\n")

        self._all_entries.extend(self._buffer)
        self._buffer.clear()

        if self._file:
            self._file.flush()

    def entries(self, category: Optional[str] = None) -> list[LogEntry]:
        """All entries so far, flushed or not, optionally for one category."""
        everything = self._all_entries + self._buffer
        if category is None:
            return everything
        return [e for e in everything if e.category == category]

    def journal(self, day: int) -> str:
        """The innkeeper's notes for one day, skipping the bookkeeping noise."""
        notes = [e.message for e in self.entries() if e.day == day and e.category in self.JOURNAL_CATEGORIES]
        if not notes:
            return f"Day {day}: A quiet day at the inn."
        return "\n".join([f"--- Day {day} ---"] + [f"  * {note}" for note in notes])

    def export_json(self, filepath: str) -> None:
        """Export all log entries to JSON."""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        data = [
            {
                "day": e.day,
                "category": e.category,
                "message": e.message,
                "data": e.data,
            }
            for e in self.entries()
        ]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None
