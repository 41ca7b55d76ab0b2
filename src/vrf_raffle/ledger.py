from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from .errors import IndexOutOfRange, InsufficientFee, RoundNotOpen
from .events import EntryRecorded, EventHub

log = logging.getLogger(__name__)


class RaffleState(str, Enum):
    OPEN = "OPEN"
    DRAWING = "DRAWING"


@dataclass
class Round:
    round_start_time: float
    state: RaffleState = RaffleState.OPEN
    entrants: List[str] = field(default_factory=list)
    collected_balance: int = 0
    # Paid above the entry fee; swept into the payout.
    surplus: int = 0
    pending_request_id: Optional[Any] = None
    draw_requested_at: Optional[float] = None
    # Words were delivered but the payout bounced; redeliver, never redraw.
    payout_pending: bool = False

    def snapshot(self) -> "Round":
        return Round(
            round_start_time=self.round_start_time,
            state=self.state,
            entrants=list(self.entrants),
            collected_balance=self.collected_balance,
            surplus=self.surplus,
            pending_request_id=self.pending_request_id,
            draw_requested_at=self.draw_requested_at,
            payout_pending=self.payout_pending,
        )

    def restore(self, other: "Round") -> None:
        self.round_start_time = other.round_start_time
        self.state = other.state
        self.entrants = list(other.entrants)
        self.collected_balance = other.collected_balance
        self.surplus = other.surplus
        self.pending_request_id = other.pending_request_id
        self.draw_requested_at = other.draw_requested_at
        self.payout_pending = other.payout_pending


class EntryLedger:
    """
    Entrants and pooled balance of the current round.

    Works on a Round owned by the Raffle. Entries are only accepted while the
    round is OPEN, and reset() is only called by the Raffle when it settles.
    """

    def __init__(self, round_: Round, entry_fee: int, events: EventHub) -> None:
        self._round = round_
        self.entry_fee = entry_fee
        self._events = events

    def enter(self, participant: str, fee_paid: int) -> int:
        """Record one entry and return the new entrant count."""
        r = self._round
        if r.state is not RaffleState.OPEN:
            raise RoundNotOpen(r.state)
        if fee_paid < self.entry_fee:
            raise InsufficientFee(fee_paid, self.entry_fee)

        r.entrants.append(participant)
        r.collected_balance += self.entry_fee
        excess = fee_paid - self.entry_fee
        if excess:
            r.surplus += excess
            log.debug("Entry from %s overpaid by %d (kept in pot)", participant, excess)

        count = len(r.entrants)
        self._events.emit(EntryRecorded(participant=participant, entrant_count=count))
        return count

    def reset(self, now: float) -> None:
        r = self._round
        r.entrants = []
        r.collected_balance = 0
        r.surplus = 0
        r.round_start_time = now

    def participant_at(self, index: int) -> str:
        entrants = self._round.entrants
        if index < 0 or index >= len(entrants):
            raise IndexOutOfRange(index, len(entrants))
        return entrants[index]

    @property
    def entrant_count(self) -> int:
        return len(self._round.entrants)

    @property
    def entrants(self) -> Tuple[str, ...]:
        return tuple(self._round.entrants)

    @property
    def collected_balance(self) -> int:
        return self._round.collected_balance

    @property
    def pot(self) -> int:
        """Everything the winner receives: fees plus any overpayment."""
        return self._round.collected_balance + self._round.surplus
