"""Registry notifications and the append-only event log.

Notifications are the only externally observable stream of registry changes.
The ``EventLog`` persists them as newline-delimited JSON so that the order in
which they were emitted is the order in which they are stored.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, ClassVar, Optional, Union

TAIL_CHUNK = 4096


@dataclass(frozen=True)
class AthleteRegistered:
    event_name: ClassVar[str] = "AthleteRegistered"

    athlete_id: int
    name: str
    caller: str


@dataclass(frozen=True)
class AchievementAdded:
    event_name: ClassVar[str] = "AchievementAdded"

    athlete_id: int
    achievement_id: int
    title: str


@dataclass(frozen=True)
class AthleteVerified:
    event_name: ClassVar[str] = "AthleteVerified"

    athlete_id: int
    verified: bool = True


RegistryEvent = Union[AthleteRegistered, AchievementAdded, AthleteVerified]

EVENT_TYPES: dict[str, type] = {
    cls.event_name: cls for cls in (AthleteRegistered, AchievementAdded, AthleteVerified)
}


def event_to_dict(event: RegistryEvent) -> dict[str, Any]:
    return {"event": event.event_name, **asdict(event)}


def event_from_dict(data: dict[str, Any]) -> RegistryEvent:
    payload = dict(data)
    cls = EVENT_TYPES[payload.pop("event")]
    payload.pop("timestamp", None)
    return cls(**payload)


@dataclass
class LoggedEvent:
    """A notification as stored in the event log."""

    sequence: int
    timestamp: str
    event: RegistryEvent

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            **event_to_dict(self.event),
        }


class EventLog:
    """File-based JSONL log of registry notifications.

    Intended to be subscribed to a ``Registry`` so that every committed
    notification is appended in emission order.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, event: RegistryEvent) -> None:
        self.append(event)

    def append(self, event: RegistryEvent) -> LoggedEvent:
        """Append a notification and return the stored entry.

        Callers writing from several processes must hold the store lock.
        """
        entry = LoggedEvent(
            sequence=self._last_sequence() + 1,
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
        )
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry.to_dict()) + "\n")
        return entry

    def read(
        self,
        *,
        event: Optional[str] = None,
        athlete_id: Optional[int] = None,
        limit: int = 200,
    ) -> list[LoggedEvent]:
        """Return filtered entries, newest first."""
        entries = self._read_all()

        if event:
            entries = [e for e in entries if e.event.event_name == event]
        if athlete_id is not None:
            entries = [e for e in entries if e.event.athlete_id == athlete_id]

        entries.sort(key=lambda e: e.sequence, reverse=True)
        return entries[:limit]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        text = self.path.read_text(encoding="utf-8")
        return [line for line in text.splitlines() if line.strip()]

    def _last_sequence(self) -> int:
        """Read the sequence of the final entry, scanning back from the end."""
        if not self.path.exists():
            return 0
        with self.path.open("rb") as fh:
            fh.seek(0, os.SEEK_END)
            pos = fh.tell()
            tail = b""
            while pos > 0:
                step = min(TAIL_CHUNK, pos)
                pos -= step
                fh.seek(pos)
                tail = fh.read(step) + tail
                lines = [line for line in tail.splitlines() if line.strip()]
                # The first line may be cut off unless the read reached the start.
                if len(lines) > 1 or (lines and pos == 0):
                    return int(json.loads(lines[-1])["sequence"])
        return 0

    def _read_all(self) -> list[LoggedEvent]:
        entries: list[LoggedEvent] = []
        for line in self._read_lines():
            data = json.loads(line)
            sequence = data.pop("sequence")
            timestamp = data.get("timestamp", "")
            entries.append(
                LoggedEvent(
                    sequence=sequence,
                    timestamp=timestamp,
                    event=event_from_dict(data),
                )
            )
        return entries
