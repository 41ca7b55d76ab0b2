from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryRecorded:
    participant: str
    entrant_count: int


@dataclass(frozen=True)
class DrawRequested:
    request_id: Any


@dataclass(frozen=True)
class WinnerSettled:
    winner: str
    payout: int
    request_id: Any


@dataclass(frozen=True)
class DrawReopened:
    request_id: Any
    entrant_count: int


Listener = Callable[[object], None]


class EventHub:
    """Fan-out of raffle events to subscribers; every event is also logged."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: object) -> None:
        log.info("%s %s", type(event).__name__, event.__dict__)
        for listener in list(self._listeners):
            listener(event)


class EventRecorder:
    """Subscriber that keeps every event it sees, in order."""

    def __init__(self) -> None:
        self.events: List[object] = []

    def __call__(self, event: object) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> List[object]:
        return [e for e in self.events if isinstance(e, kind)]
