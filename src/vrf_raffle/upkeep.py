from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import UpkeepNotNeeded
from .raffle import Raffle

log = logging.getLogger(__name__)


class UpkeepTrigger:
    """The two calls an external automation service makes against the raffle."""

    def __init__(self, raffle: Raffle) -> None:
        self.raffle = raffle

    def check(self) -> Tuple[bool, Dict[str, Any]]:
        r = self.raffle
        payload = {
            "balance": r.collected_balance,
            "entrant_count": r.entrant_count,
            "state": r.state.value,
            "elapsed_s": r.elapsed(),
            "interval_s": r.interval_s,
        }
        return r.can_draw(), payload

    def perform(self) -> Any:
        # request_draw re-validates; a stale check result cannot slip through.
        return self.raffle.request_draw()


class Keeper:
    """
    Polling loop in place of an automation network: check often, perform
    when needed, and reopen draws the oracle never answered.
    """

    def __init__(
        self,
        trigger: UpkeepTrigger,
        poll_interval_s: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
        on_tick: Optional[Callable[[], None]] = None,
    ) -> None:
        self.trigger = trigger
        self.poll_interval_s = poll_interval_s
        self.sleep = sleep
        # e.g. HttpCoordinator.sync, to pull in answered requests
        self.on_tick = on_tick

    def tick(self) -> Optional[Any]:
        """One polling round; returns the request id if a draw was started."""
        if self.on_tick is not None:
            self.on_tick()

        raffle = self.trigger.raffle
        if raffle.draw_is_stale():
            raffle.reopen_stale_draw()

        needed, payload = self.trigger.check()
        log.debug("Upkeep check: needed=%s %s", needed, payload)
        if not needed:
            return None
        try:
            request_id = self.trigger.perform()
        except UpkeepNotNeeded as e:
            # Someone else drew between check and perform.
            log.info("Upkeep lost race: %s", e)
            return None
        log.info("Draw requested: %s", request_id)
        return request_id

    def run(self, max_ticks: Optional[int] = None) -> None:
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self.tick()
            ticks += 1
            if max_ticks is None or ticks < max_ticks:
                self.sleep(self.poll_interval_s)
