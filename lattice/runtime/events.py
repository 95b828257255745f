"""
Lattice Event Stream

Sequencing and envelope checks for canonical execution events.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Optional
from datetime import datetime, timezone
import json

from ..config import get_config
from ..schemas.execution import EventType, ExecutionEvent


class EventProtocolError(ValueError):
    """An event or event stream violates the envelope/ordering rules."""


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class EventSequencer:
    """
    Issues events for a single run with strictly increasing seq.

    One sequencer per run; never share one across runs.
    """

    def __init__(
        self,
        run_id: str,
        seq_start: Optional[int] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        if not run_id:
            raise EventProtocolError("Stream event missing runId")
        self.run_id = run_id
        self._next_seq = get_config().events.seq_start if seq_start is None else seq_start
        self._clock = clock or utc_timestamp

    @property
    def next_seq(self) -> int:
        return self._next_seq

    def emit(
        self,
        event_type: EventType,
        payload: Optional[Dict[str, Any]] = None,
        stage_id: Optional[str] = None,
    ) -> ExecutionEvent:
        event = ExecutionEvent(
            run_id=self.run_id,
            seq=self._next_seq,
            timestamp=self._clock(),
            type=EventType(event_type),
            payload=payload or {},
            stage_id=stage_id,
        )
        validate_envelope(event)
        self._next_seq += 1
        return event


def validate_envelope(event: ExecutionEvent) -> None:
    """Raises EventProtocolError if the envelope is incomplete."""
    if not event.run_id:
        raise EventProtocolError("Stream event missing runId")
    if isinstance(event.seq, bool) or not isinstance(event.seq, int) or event.seq < 0:
        raise EventProtocolError("Stream event seq must be a non-negative integer")
    if not event.timestamp:
        raise EventProtocolError("Stream event missing timestamp")


def serialize_event(event: ExecutionEvent) -> str:
    validate_envelope(event)
    return json.dumps(event.to_dict())


def validate_event_stream(events: Iterable[ExecutionEvent]) -> List[ExecutionEvent]:
    """
    Check per-run ordering: within one runId every seq is greater than the
    one before it. Runs may interleave.
    """
    checked: List[ExecutionEvent] = []
    last_seq: Dict[str, int] = {}
    for event in events:
        validate_envelope(event)
        previous = last_seq.get(event.run_id)
        if previous is not None:
            if event.seq == previous:
                raise EventProtocolError(f"Duplicate seq {event.seq} for run {event.run_id}")
            if event.seq < previous:
                raise EventProtocolError(
                    f"Out-of-order seq {event.seq} after {previous} for run {event.run_id}"
                )
        last_seq[event.run_id] = event.seq
        checked.append(event)
    return checked
