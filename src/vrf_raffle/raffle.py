"""
The raffle state machine.

A round cycles OPEN -> DRAWING -> OPEN forever. request_draw() is the only way
out of OPEN; on_randomness_ready() is the only way back. While DRAWING, entries
and further draw requests are refused.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, Sequence

from .config import Settings
from .draw import HistoricalResult, Settlement, pick_winner
from .errors import (
    DrawNotStale,
    MalformedFulfillment,
    SettlementInProgress,
    TransferFailed,
    UnexpectedFulfillment,
    UpkeepNotNeeded,
)
from .events import DrawReopened, DrawRequested, EventHub, WinnerSettled
from .ledger import EntryLedger, RaffleState, Round
from .oracle import OracleClient

log = logging.getLogger(__name__)


class Raffle:
    def __init__(
        self,
        settings: Settings,
        oracle: OracleClient,
        payout,
        clock: Callable[[], float] = time.time,
        events: Optional[EventHub] = None,
    ) -> None:
        self.settings = settings
        self.oracle = oracle
        self.payout = payout
        self.clock = clock
        self.events = events or EventHub()

        self._round = Round(round_start_time=clock())
        self._ledger = EntryLedger(self._round, settings.entry_fee, self.events)
        self._recent: Optional[HistoricalResult] = None
        self._lock = threading.RLock()
        # Set while payout.transfer runs; the lock alone would let the
        # payout leg re-enter on the same thread.
        self._settling = False

        oracle.bind(self.on_randomness_ready)

    # --- entries ---------------------------------------------------------

    def enter(self, participant: str, fee_paid: int) -> int:
        with self._lock:
            self._refuse_while_settling("enter")
            return self._ledger.enter(participant, fee_paid)

    # --- upkeep ----------------------------------------------------------

    def can_draw(self) -> bool:
        r = self._round
        time_passed = (self.clock() - r.round_start_time) >= self.settings.interval_s
        is_open = r.state is RaffleState.OPEN
        has_balance = r.collected_balance > 0
        has_players = len(r.entrants) > 0
        return time_passed and is_open and has_balance and has_players

    def request_draw(self) -> Any:
        with self._lock:
            self._refuse_while_settling("request_draw")
            r = self._round
            if not self.can_draw():
                raise UpkeepNotNeeded(r.collected_balance, len(r.entrants), r.state)

            r.state = RaffleState.DRAWING
            try:
                request_id = self.oracle.request(
                    num_words=self.settings.num_words,
                    confirmations=self.settings.request_confirmations,
                    gas_budget=self.settings.callback_gas_limit,
                )
            except Exception:
                r.state = RaffleState.OPEN
                raise
            r.pending_request_id = request_id
            r.draw_requested_at = self.clock()

        self.events.emit(DrawRequested(request_id=request_id))
        return request_id

    # --- settlement ------------------------------------------------------

    def on_randomness_ready(self, request_id: Any, words: Sequence[int]) -> Settlement:
        with self._lock:
            self._refuse_while_settling("on_randomness_ready")
            r = self._round
            if r.state is not RaffleState.DRAWING or request_id != r.pending_request_id:
                log.warning(
                    "SECURITY: fulfilment for %s rejected (pending=%s, state=%s)",
                    request_id, r.pending_request_id, r.state.value,
                )
                raise UnexpectedFulfillment(request_id, r.pending_request_id, r.state)
            if not words:
                raise MalformedFulfillment(request_id, "no random words")

            word = words[0]
            index, winner = pick_winner(word, r.entrants)
            payout = self._ledger.pot
            entrants = self._ledger.entrants
            now = self.clock()

            before = r.snapshot()
            previous = self._recent

            self._recent = HistoricalResult(
                winner=winner, payout=payout, request_id=request_id, settled_at=now
            )
            r.state = RaffleState.OPEN
            r.pending_request_id = None
            r.draw_requested_at = None
            r.payout_pending = False
            self._ledger.reset(now)

            # Local state is final before any funds move.
            self._settling = True
            try:
                self.payout.transfer(winner, payout)
            except Exception as e:
                r.restore(before)
                r.payout_pending = True
                self._recent = previous
                log.error(
                    "Payout of %d to %s failed; round rolled back to DRAWING (request %s): %s",
                    payout, winner, request_id, e,
                )
                if isinstance(e, TransferFailed):
                    raise
                raise TransferFailed(winner, payout, str(e)) from e
            finally:
                self._settling = False

        self.events.emit(WinnerSettled(winner=winner, payout=payout, request_id=request_id))
        return Settlement(
            request_id=request_id,
            random_word=word,
            winner_index=index,
            winner=winner,
            payout=payout,
            entrants=entrants,
            settled_at=now,
        )

    # --- stale draw recovery --------------------------------------------

    def draw_is_stale(self) -> bool:
        r = self._round
        timeout = self.settings.draw_timeout_s
        if timeout is None or r.state is not RaffleState.DRAWING:
            return False
        if r.payout_pending:
            return False
        return (self.clock() - r.draw_requested_at) >= timeout

    def reopen_stale_draw(self) -> None:
        """Give up on a request the oracle never answered; entrants are kept."""
        with self._lock:
            self._refuse_while_settling("reopen_stale_draw")
            r = self._round
            if not self.draw_is_stale():
                elapsed = None
                if r.draw_requested_at is not None:
                    elapsed = self.clock() - r.draw_requested_at
                raise DrawNotStale(elapsed, self.settings.draw_timeout_s)

            request_id = r.pending_request_id
            self.oracle.cancel(request_id)
            r.state = RaffleState.OPEN
            r.pending_request_id = None
            r.draw_requested_at = None
            log.warning("Draw %s timed out; round reopened with %d entrants",
                        request_id, len(r.entrants))

        self.events.emit(DrawReopened(request_id=request_id, entrant_count=len(r.entrants)))

    # --- read accessors --------------------------------------------------

    @property
    def entry_fee(self) -> int:
        return self.settings.entry_fee

    @property
    def interval_s(self) -> float:
        return self.settings.interval_s

    @property
    def num_words(self) -> int:
        return self.settings.num_words

    @property
    def request_confirmations(self) -> int:
        return self.settings.request_confirmations

    @property
    def state(self) -> RaffleState:
        return self._round.state

    @property
    def round_start_time(self) -> float:
        return self._round.round_start_time

    @property
    def pending_request_id(self) -> Any:
        return self._round.pending_request_id

    @property
    def entrant_count(self) -> int:
        return self._ledger.entrant_count

    @property
    def collected_balance(self) -> int:
        return self._ledger.collected_balance

    @property
    def recent_result(self) -> Optional[HistoricalResult]:
        return self._recent

    @property
    def recent_winner(self) -> Optional[str]:
        return self._recent.winner if self._recent else None

    @property
    def payout_pending(self) -> bool:
        return self._round.payout_pending

    def _refuse_while_settling(self, operation: str) -> None:
        if self._settling:
            raise SettlementInProgress(operation)

    def participant_at(self, index: int) -> str:
        return self._ledger.participant_at(index)

    def elapsed(self) -> float:
        return self.clock() - self._round.round_start_time
