"""
Randomness oracle clients.

An OracleClient issues randomness requests and correlates the asynchronous
fulfilments back to them. It knows nothing about raffles: it hands the words
to whatever consumer was bound, at most once per request it issued.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from .errors import MalformedFulfillment, RequestAlreadyFulfilled, UnknownRequest
from .rpc import RpcClient

log = logging.getLogger(__name__)

Consumer = Callable[[Any, List[int]], Any]


@dataclass(frozen=True)
class RandomnessRequest:
    request_id: Any
    gas_lane: str
    subscription_id: int
    confirmations: int
    callback_gas_limit: int
    num_words: int


class OracleClient(ABC):
    def __init__(self, gas_lane: str, subscription_id: int) -> None:
        self.gas_lane = gas_lane
        self.subscription_id = subscription_id
        self._consumer: Optional[Consumer] = None
        self._pending: Dict[Any, RandomnessRequest] = {}
        self._delivering: Set[Any] = set()
        self._fulfilled: Set[Any] = set()
        self._lock = threading.Lock()

    def bind(self, consumer: Consumer) -> None:
        self._consumer = consumer

    @abstractmethod
    def _submit(
        self, confirmations: int, callback_gas_limit: int, num_words: int
    ) -> Any:
        """Send the request to the coordinator and return its request id."""

    def request(self, num_words: int, confirmations: int, gas_budget: int) -> Any:
        """Issue a request and return its id without waiting for the words."""
        request_id = self._submit(confirmations, gas_budget, num_words)
        req = RandomnessRequest(
            request_id=request_id,
            gas_lane=self.gas_lane,
            subscription_id=self.subscription_id,
            confirmations=confirmations,
            callback_gas_limit=gas_budget,
            num_words=num_words,
        )
        with self._lock:
            self._pending[request_id] = req
        log.debug("Randomness requested: %s", req)
        return request_id

    def on_fulfilled(self, request_id: Any, words: Sequence[int]) -> Any:
        """
        Deliver words for a request to the bound consumer.

        The request only counts as fulfilled once the consumer returns; if it
        raises, the same words may be delivered again.
        """
        with self._lock:
            if request_id in self._fulfilled or request_id in self._delivering:
                log.warning("SECURITY: replayed fulfilment for request %s rejected", request_id)
                raise RequestAlreadyFulfilled(request_id)
            req = self._pending.get(request_id)
            if req is None:
                log.warning("SECURITY: fulfilment for unknown request %s rejected", request_id)
                raise UnknownRequest(request_id)
            checked = self._check_words(req, words)
            self._delivering.add(request_id)

        if self._consumer is None:
            with self._lock:
                self._delivering.discard(request_id)
            raise RuntimeError("No consumer bound to the oracle client.")

        try:
            result = self._consumer(request_id, checked)
        except Exception:
            with self._lock:
                self._delivering.discard(request_id)
            raise

        with self._lock:
            self._delivering.discard(request_id)
            self._pending.pop(request_id, None)
            self._fulfilled.add(request_id)
        return result

    def cancel(self, request_id: Any) -> None:
        with self._lock:
            if self._pending.pop(request_id, None) is None:
                raise UnknownRequest(request_id)
        log.info("Randomness request %s cancelled", request_id)

    @property
    def pending_requests(self) -> List[RandomnessRequest]:
        with self._lock:
            return list(self._pending.values())

    def _check_words(self, req: RandomnessRequest, words: Sequence[int]) -> List[int]:
        if words is None or isinstance(words, (str, bytes)):
            log.warning("SECURITY: malformed fulfilment for request %s", req.request_id)
            raise MalformedFulfillment(req.request_id, "words must be a sequence")
        out = list(words)
        if len(out) != req.num_words:
            log.warning("SECURITY: malformed fulfilment for request %s", req.request_id)
            raise MalformedFulfillment(
                req.request_id, f"expected {req.num_words} words, got {len(out)}"
            )
        for w in out:
            if isinstance(w, bool) or not isinstance(w, int) or w < 0:
                log.warning("SECURITY: malformed fulfilment for request %s", req.request_id)
                raise MalformedFulfillment(req.request_id, f"invalid word {w!r}")
        return out


class LocalCoordinator(OracleClient):
    """
    In-process coordinator. Requests get sequential ids and stay pending until
    fulfill() is called, which stands in for the oracle network answering.
    """

    def __init__(self, gas_lane: str, subscription_id: int = 1) -> None:
        super().__init__(gas_lane, subscription_id)
        self._next_id = 1
        self.last_request_id: Optional[int] = None

    def _submit(self, confirmations, callback_gas_limit, num_words):
        request_id = self._next_id
        self._next_id += 1
        self.last_request_id = request_id
        return request_id

    def fulfill(self, request_id: int, words: Optional[Sequence[int]] = None) -> Any:
        if words is None:
            req = next((r for r in self.pending_requests if r.request_id == request_id), None)
            count = req.num_words if req else 1
            words = [derive_word(request_id, i) for i in range(count)]
        return self.on_fulfilled(request_id, words)


class HttpCoordinator(OracleClient):
    """Coordinator reached over JSON-RPC; sync() polls and delivers answers."""

    def __init__(self, rpc: RpcClient, gas_lane: str, subscription_id: int) -> None:
        super().__init__(gas_lane, subscription_id)
        self.rpc = rpc

    def _submit(self, confirmations, callback_gas_limit, num_words):
        return self.rpc.request_random_words(
            gas_lane=self.gas_lane,
            subscription_id=self.subscription_id,
            confirmations=confirmations,
            callback_gas_limit=callback_gas_limit,
            num_words=num_words,
        )

    def sync(self) -> int:
        """Deliver every pending request the coordinator has answered."""
        delivered = 0
        for req in self.pending_requests:
            words = self.rpc.get_fulfillment(req.request_id)
            if words is None:
                continue
            self.on_fulfilled(req.request_id, words)
            delivered += 1
        return delivered


def derive_word(request_id: Any, index: int) -> int:
    digest = hashlib.sha256(f"{request_id}:{index}".encode("utf-8")).hexdigest()
    return int(digest, 16)
