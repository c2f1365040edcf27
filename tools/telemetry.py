"""Fire-and-forget tip-sheet telemetry.

Events are handed to a pluggable backend. Emission is best effort: a backend
failure is logged and swallowed so telemetry can never block or break content
resolution.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from fitmatch_app.logging_config import log_event

LOGGER = logging.getLogger(__name__)

SCHEMA_VERSION = 1

RESOLUTION_FAILED = "tipsheet_resolution_failed"
RETRY_CLICKED = "tipsheet_retry_clicked"
SUGGESTIONS_VIEWED = "suggestions_viewed"


def new_instance_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass(frozen=True)
class TelemetryEvent:
    """One diagnostic event. Optional fields are omitted when unset."""

    event_type: str
    session_id: str
    instance_id: str
    topic: Optional[str] = None
    category: Optional[str] = None
    vibe: Optional[str] = None
    error_kind: Optional[str] = None
    attempt_number: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict, hash=False)
    schema_version: int = SCHEMA_VERSION
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value not in (None, {})}


class TelemetryBackend:
    """Interface for telemetry sinks."""

    def track(self, event: TelemetryEvent) -> None:
        raise NotImplementedError


class LoggingTelemetryBackend(TelemetryBackend):
    """Writes events to the structured log."""

    def track(self, event: TelemetryEvent) -> None:
        payload = event.to_dict()
        event_type = payload.pop("event_type")
        log_event(LOGGER, logging.INFO, event_type, **payload)


class RecordingTelemetryBackend(TelemetryBackend):
    """Keeps events in memory; handy for tests and local debugging."""

    def __init__(self) -> None:
        self.events: List[TelemetryEvent] = []

    def track(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> List[TelemetryEvent]:
        return [event for event in self.events if event.event_type == event_type]


def filters_fingerprint(category: str, vibe: str, filters: Mapping[str, Sequence[str] | str]) -> str:
    """Stable ``category|vibe|key=value`` fingerprint of the active filters."""

    parts = []
    for key in sorted(filters):
        value = filters[key]
        rendered = value if isinstance(value, str) else ",".join(sorted(value))
        parts.append(f"{key}={rendered}")
    return "|".join([category, vibe, *parts])


class TipSheetTelemetry:
    """Emits tip-sheet events for one app session."""

    def __init__(self, backend: TelemetryBackend | None = None, session_id: str | None = None) -> None:
        self.backend = backend or LoggingTelemetryBackend()
        self.session_id = session_id or uuid.uuid4().hex[:8]

    def emit(self, event: TelemetryEvent) -> None:
        try:
            self.backend.track(event)
        except Exception:  # noqa: BLE001 - telemetry must never break callers
            LOGGER.warning("Telemetry backend failed", exc_info=True, extra={"event_type": event.event_type})

    def resolution_failed(
        self,
        instance_id: str,
        topic: Optional[str],
        category: Optional[str],
        vibe: Optional[str],
        error_kind: str,
    ) -> None:
        self.emit(
            TelemetryEvent(
                event_type=RESOLUTION_FAILED,
                session_id=self.session_id,
                instance_id=instance_id,
                topic=topic,
                category=category,
                vibe=vibe,
                error_kind=error_kind,
            )
        )

    def retry_clicked(
        self,
        instance_id: str,
        topic: Optional[str],
        category: Optional[str],
        vibe: Optional[str],
        error_kind: str,
        attempt_number: int,
    ) -> None:
        self.emit(
            TelemetryEvent(
                event_type=RETRY_CLICKED,
                session_id=self.session_id,
                instance_id=instance_id,
                topic=topic,
                category=category,
                vibe=vibe,
                error_kind=error_kind,
                attempt_number=attempt_number,
            )
        )

    def suggestions_viewed(
        self,
        instance_id: str,
        topic: str,
        category: str,
        vibe: Optional[str],
        item_ids: Sequence[str],
        relaxed_keys: Sequence[str],
        fingerprint: str,
    ) -> None:
        self.emit(
            TelemetryEvent(
                event_type=SUGGESTIONS_VIEWED,
                session_id=self.session_id,
                instance_id=instance_id,
                topic=topic,
                category=category,
                vibe=vibe,
                details={
                    "item_ids": list(item_ids),
                    "total_shown": len(item_ids),
                    "was_relaxed": bool(relaxed_keys),
                    "relaxed_keys": list(relaxed_keys),
                    "filters_fingerprint": fingerprint,
                },
            )
        )


__all__ = [
    "LoggingTelemetryBackend",
    "RESOLUTION_FAILED",
    "RETRY_CLICKED",
    "RecordingTelemetryBackend",
    "SCHEMA_VERSION",
    "SUGGESTIONS_VIEWED",
    "TelemetryBackend",
    "TelemetryEvent",
    "TipSheetTelemetry",
    "filters_fingerprint",
    "new_instance_id",
]
