# src/arcadesim/storage/jsonl.py
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from arcadesim.core.events.base import Event


class JsonlEventStore:
    """
    Append-only JSONL event store.

    - One event per line (JSON dict).
    - Deterministic: preserves publish order as written.
    """

    def __init__(self, *, path: Path) -> None:
        self._path = path
        self._fh = None  # lazy open

        # Ensure parent exists
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        if self._fh is not None:
            return
        # line-buffered text mode
        self._fh = self._path.open("a", encoding="utf-8", buffering=1)

    def close(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.flush()
        finally:
            self._fh.close()
            self._fh = None

    def append(self, event: Event) -> None:
        """
        Append an event as a single JSON line.

        Serialization rules:
        - dataclasses -> asdict
        - enums -> value, UUID/datetime -> str
        """
        self.open()
        assert self._fh is not None

        payload = event_to_dict(event)
        line = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=_default)
        self._fh.write(line + "\n")
        self._fh.flush()

    def iter_events(self) -> list[Mapping[str, Any]]:
        """
        Read all events as dicts (useful for quick diagnostics/tests).
        """
        if not self._path.exists():
            return []
        out: list[Mapping[str, Any]] = []
        with self._path.open("r", encoding="utf-8") as fh:
            for line in fh:
                s = line.strip()
                if not s:
                    continue
                out.append(json.loads(s))
        return out


def _default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


def event_to_dict(event: Event) -> dict[str, Any]:
    # All events are dataclasses in this project
    if is_dataclass(event):
        d = asdict(event)
    else:
        d = dict(event.__dict__)

    # Ensure event_type is always present even though it's ClassVar
    d["event_type"] = event.event_type
    return d
