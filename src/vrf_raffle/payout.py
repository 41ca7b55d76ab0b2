from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Set, Tuple

import httpx

from .errors import TransferFailed
from .rpc import RpcClient

log = logging.getLogger(__name__)


class InMemoryBank:
    """Payout leg that credits balances in a dict. Used by simulate and tests."""

    def __init__(self) -> None:
        self.balances: Dict[str, int] = defaultdict(int)
        self.transfers: List[Tuple[str, int]] = []
        # Recipients whose transfers bounce
        self.rejecting: Set[str] = set()

    def transfer(self, recipient: str, amount: int) -> None:
        if recipient in self.rejecting:
            raise TransferFailed(recipient, amount, "recipient rejected transfer")
        self.balances[recipient] += amount
        self.transfers.append((recipient, amount))


class RpcPayout:
    """Payout leg that asks a JSON-RPC wallet service to move the pot."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc
        self.last_tx_hash: str | None = None

    def transfer(self, recipient: str, amount: int) -> None:
        try:
            self.last_tx_hash = self.rpc.send_transfer(recipient, amount)
        except (httpx.HTTPError, RuntimeError, ValueError) as e:
            # ValueError covers a non-JSON body from the wallet service.
            raise TransferFailed(recipient, amount, str(e)) from e
        log.info("Payout tx %s: %d -> %s", self.last_tx_hash, amount, recipient)
