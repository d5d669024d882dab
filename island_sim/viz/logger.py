"""Structured, tick-stamped event logging for narrative and debugging."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Optional, TextIO

from island_sim.core.config import LOG_MAX_ENTRIES


@dataclass
class LogEntry:
    """A single log entry."""

    tick: int
    category: str
    message: str
    agent_ids: list[int] = field(default_factory=list)
    data: dict = field(default_factory=dict)


class SimLogger:
    """Structured logging with categories and verbosity control."""

    # Category constants
    LIFECYCLE = "LIFECYCLE"
    THREAT = "THREAT"
    TASK = "TASK"
    CRAFT = "CRAFT"
    FISHING = "FISHING"
    SOCIAL = "SOCIAL"
    SKILL = "SKILL"
    SANITY = "SANITY"
    SPOILAGE = "SPOILAGE"

    _VERBOSITY_MAP: dict[str, int] = {
        LIFECYCLE: 0,
        THREAT: 0,
        TASK: 1,
        CRAFT: 1,
        FISHING: 1,
        SOCIAL: 2,
        SKILL: 2,
        SANITY: 3,
        SPOILAGE: 3,
    }

    def __init__(
        self,
        verbosity: int = 1,
        log_file: Optional[str] = None,
        stdout: bool = True,
        max_entries: int = LOG_MAX_ENTRIES,
    ) -> None:
        """
        verbosity levels:
            0 = only lifecycle and threats
            1 = + tasks, crafting and fishing
            2 = + social and skill gains
            3 = everything (sanity fixes, spoilage)
        """
        self.verbosity = verbosity
        self.max_entries = max_entries
        self._buffer: list[LogEntry] = []
        self._all_entries: list[LogEntry] = []
        self._file: Optional[TextIO] = None
        self._stdout = stdout

        if log_file:
            os.makedirs(os.path.dirname(log_file) if os.path.dirname(log_file) else ".", exist_ok=True)
            self._file = open(log_file, "w", encoding="utf-8")

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._all_entries)

    def log(
        self,
        category: str,
        message: str,
        agent_ids: Optional[list[int]] = None,
        tick: int = 0,
        **data,
    ) -> None:
        """Buffer an entry until the end of the tick."""
        self._buffer.append(LogEntry(
            tick=tick,
            category=category,
            message=message,
            agent_ids=agent_ids or [],
            data=data,
        ))

    def flush_tick(self, tick: int) -> None:
        """Write buffered entries that pass the verbosity filter, then archive them."""
        for entry in self._buffer:
            required_verbosity = self._VERBOSITY_MAP.get(entry.category, 1)
            if required_verbosity <= self.verbosity:
                line = f"[Tick {entry.tick:>7}] [{entry.category:<9}] {entry.message}"
                if self._stdout:
                    print(line)
                if self._file:
                    self._file.write(line + "\n")

        self._all_entries.extend(self._buffer)
        self._buffer.clear()
        overflow = len(self._all_entries) - self.max_entries
        if overflow > 0:
            del self._all_entries[:overflow]

        if self._file:
            self._file.flush()

    def count(self, category: str) -> int:
        return sum(1 for e in self._all_entries if e.category == category)

    def get_narrative(self, tick: int) -> str:
        """Human-readable summary of one tick."""
        tick_entries = [e for e in self._all_entries if e.tick == tick]
        if not tick_entries:
            return f"Tick {tick}: Nothing notable happened."

        lines = [f"=== Tick {tick} ==="]
        for entry in tick_entries:
            lines.append(f"  [{entry.category}] {entry.message}")
        return "\n".join(lines)

    def export_json(self, filepath: str) -> None:
        """Export all archived entries to JSON."""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        data = [
            {
                "tick": e.tick,
                "category": e.category,
                "message": e.message,
                "agent_ids": e.agent_ids,
                "data": e.data,
            }
            for e in self._all_entries
        ]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None
