from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Sequence, Tuple

from .project_constants import FEE_DECIMALS


@dataclass(frozen=True)
class HistoricalResult:
    winner: str
    payout: int
    request_id: Any
    settled_at: float


@dataclass(frozen=True)
class Settlement:
    request_id: Any
    random_word: int
    winner_index: int
    winner: str
    payout: int
    entrants: Tuple[str, ...]
    settled_at: float

    def to_audit(self) -> Dict[str, Any]:
        # Everything needed to recompute the winner without the raffle.
        return {
            "request_id": str(self.request_id),
            "random_word": str(self.random_word),  # big int; store as string for safety
            "winner_index": self.winner_index,
            "winner": self.winner,
            "payout": str(self.payout),
            "settled_at": self.settled_at,
            "entrants": list(self.entrants),
        }


def to_units(raw_amount: int) -> Decimal:
    return Decimal(raw_amount) / (Decimal(10) ** FEE_DECIMALS)


def to_raw(units: str | Decimal) -> int:
    raw = Decimal(units) * (Decimal(10) ** FEE_DECIMALS)
    if raw != raw.to_integral_value():
        raise ValueError(f"{units} has more than {FEE_DECIMALS} decimals")
    return int(raw)


def pick_winner_index(random_word: int, entrant_count: int) -> int:
    """
    Reduce a random word to an entrant index.

    Plain modulo: slightly biased toward low indices when 2**256 is not a
    multiple of entrant_count, negligible at realistic entrant counts.
    """
    if entrant_count <= 0:
        raise ValueError("Cannot pick a winner from zero entrants.")
    if random_word < 0:
        raise ValueError(f"Random word must be non-negative, got {random_word}")
    return random_word % entrant_count


def pick_winner(random_word: int, entrants: Sequence[str]) -> Tuple[int, str]:
    idx = pick_winner_index(random_word, len(entrants))
    return idx, entrants[idx]
