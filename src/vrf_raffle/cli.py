from __future__ import annotations

import argparse
import json
import logging
import time
from datetime import datetime, timezone
from decimal import InvalidOperation
from typing import Any, Dict

from .config import Settings
from .draw import to_raw, to_units
from .oracle import LocalCoordinator
from .payout import InMemoryBank
from .raffle import Raffle
from .upkeep import Keeper, UpkeepTrigger
from .verify import verify_audit


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


class SimulatedClock:
    """Wall clock that the keeper's sleep() moves forward instantly."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def cmd_simulate(args: argparse.Namespace) -> int:
    entry_fee = None
    if args.entry_fee:
        try:
            entry_fee = to_raw(args.entry_fee)
        except (InvalidOperation, ValueError):
            raise SystemExit(f"Invalid --entry-fee {args.entry_fee!r}; expected units like 0.1.")
    settings = Settings.from_env(
        entry_fee_override=entry_fee,
        interval_override=args.interval,
    )
    log = logging.getLogger("simulate")

    clock = SimulatedClock(time.time())
    oracle = LocalCoordinator(settings.gas_lane, settings.subscription_id or 1)
    bank = InMemoryBank()
    raffle = Raffle(settings, oracle, bank, clock=clock)

    for player in args.player:
        raffle.enter(player, settings.entry_fee)
    log.info("Entrants         : %d", raffle.entrant_count)
    log.info("Collected        : %s", to_units(raffle.collected_balance))

    keeper = Keeper(
        UpkeepTrigger(raffle),
        poll_interval_s=max(settings.interval_s / 4, 1.0),
        sleep=clock.advance,
    )
    request_id = None
    for _ in range(args.max_polls):
        request_id = keeper.tick()
        if request_id is not None:
            break
        clock.advance(keeper.poll_interval_s)
    if request_id is None:
        raise SystemExit("Draw never became due. Did anyone enter?")

    words = [args.word] if args.word is not None else None
    settlement = oracle.fulfill(request_id, words)

    audit: Dict[str, Any] = {
        "metadata": {
            "tool": "vrf-raffle",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "entry_fee": str(settings.entry_fee),
            "interval_s": settings.interval_s,
            "gas_lane": settings.gas_lane,
            "subscription_id": oracle.subscription_id,
            "request_confirmations": settings.request_confirmations,
            "callback_gas_limit": settings.callback_gas_limit,
        },
        "settlement": settlement.to_audit(),
    }

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)

    print("========================================")
    print("VRF RAFFLE DRAW (simulated oracle)")
    print("========================================")
    print(f"Request id    : {settlement.request_id}")
    print(f"Random word   : {settlement.random_word}")
    print(f"Winner index  : {settlement.winner_index} of {len(settlement.entrants)}")
    print("----------------------------------------")
    print(f"Winner        : {settlement.winner}")
    print(f"Payout        : {to_units(settlement.payout)}")
    print("----------------------------------------")
    print(f"Wrote audit: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_audit(args.audit)
    print("AUDIT VERIFIED")
    print(f"Request id    : {result['request_id']}")
    print(f"Winner        : {result['winner']}")
    print(f"Winner index  : {result['winner_index']} of {result['entrant_count']}")
    print(f"Payout        : {to_units(result['payout'])}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vrf-raffle",
        description="Interval raffle settled by an asynchronous randomness oracle.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("simulate", help="Run one full round against a local oracle.")
    s.add_argument(
        "--player", action="append", required=True,
        help="Entrant identity; repeat once per entry.",
    )
    s.add_argument("--entry-fee", default=None, help="Entry fee in whole units (e.g. 0.1).")
    s.add_argument("--interval", type=float, default=None, help="Draw interval seconds.")
    s.add_argument("--word", type=int, default=None, help="Fixed random word to deliver.")
    s.add_argument("--max-polls", type=int, default=1000, help="Keeper polls before giving up.")
    s.add_argument("--out", default="settlement.json", help="Audit output JSON path.")
    s.set_defaults(func=cmd_simulate)

    v = sub.add_parser("verify", help="Re-check a settlement audit deterministically.")
    v.add_argument("--audit", required=True, help="Path to settlement.json.")
    v.set_defaults(func=cmd_verify)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
