from __future__ import annotations

import json
from typing import Any, Dict

from .draw import pick_winner


def verify_audit(audit_path: str) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)

    settlement = audit["settlement"]
    entrants = settlement["entrants"]
    word = int(settlement["random_word"])

    if not entrants:
        raise RuntimeError("Audit lists no entrants.")

    payout = int(settlement["payout"])
    fee = int(audit["metadata"]["entry_fee"])
    if payout < fee * len(entrants):
        raise RuntimeError(
            f"Payout mismatch: audit={payout} below fees collected={fee * len(entrants)}"
        )

    index, winner = pick_winner(word, entrants)
    if index != int(settlement["winner_index"]):
        raise RuntimeError(
            f"Winner index mismatch: audit={settlement['winner_index']} recomputed={index}"
        )
    if winner != settlement["winner"]:
        raise RuntimeError(
            f"Winner mismatch: audit={settlement['winner']} recomputed={winner}"
        )

    return {
        "ok": True,
        "request_id": settlement["request_id"],
        "winner": winner,
        "winner_index": index,
        "payout": payout,
        "entrant_count": len(entrants),
    }
