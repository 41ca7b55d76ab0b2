from __future__ import annotations

from typing import Any


class RaffleError(Exception):
    """Base class for everything the raffle raises on purpose."""


class ConfigError(RuntimeError):
    pass


# Validation errors: caller mistakes, never mutate state.


class InsufficientFee(RaffleError):
    def __init__(self, paid: int, required: int) -> None:
        super().__init__(f"Entry fee too low: paid={paid} required={required}")
        self.paid = paid
        self.required = required


class RoundNotOpen(RaffleError):
    def __init__(self, state: Any) -> None:
        super().__init__(f"Raffle not open (state={state})")
        self.state = state


class UpkeepNotNeeded(RaffleError):
    """Draw refused; carries the values the predicate was evaluated on."""

    def __init__(self, balance: int, entrant_count: int, state: Any) -> None:
        super().__init__(
            f"Upkeep not needed: balance={balance} entrants={entrant_count} state={state}"
        )
        self.balance = balance
        self.entrant_count = entrant_count
        self.state = state


class IndexOutOfRange(RaffleError, IndexError):
    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"Entrant index {index} out of range (entrants={length})")
        self.index = index
        self.length = length


class DrawNotStale(RaffleError):
    def __init__(self, elapsed: float | None, timeout: float | None) -> None:
        super().__init__(f"Draw cannot be reopened: elapsed={elapsed} timeout={timeout}")
        self.elapsed = elapsed
        self.timeout = timeout


# Settlement


class TransferFailed(RaffleError):
    def __init__(self, recipient: str, amount: int, reason: str = "") -> None:
        msg = f"Payout of {amount} to {recipient} failed"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.recipient = recipient
        self.amount = amount
        self.reason = reason


class UnexpectedFulfillment(RaffleError):
    """Fulfilment reached the raffle for a request it is not waiting on."""

    def __init__(self, request_id: Any, pending_request_id: Any, state: Any) -> None:
        super().__init__(
            f"Unexpected fulfilment for request {request_id} "
            f"(pending={pending_request_id}, state={state})"
        )
        self.request_id = request_id
        self.pending_request_id = pending_request_id
        self.state = state


# Oracle / protocol errors: rejected before reaching the raffle.


class OracleError(RaffleError):
    pass


class UnknownRequest(OracleError):
    def __init__(self, request_id: Any) -> None:
        super().__init__(f"Nonexistent request: {request_id}")
        self.request_id = request_id


class RequestAlreadyFulfilled(OracleError):
    def __init__(self, request_id: Any) -> None:
        super().__init__(f"Request {request_id} was already fulfilled")
        self.request_id = request_id


class MalformedFulfillment(OracleError):
    def __init__(self, request_id: Any, reason: str) -> None:
        super().__init__(f"Malformed fulfilment for request {request_id}: {reason}")
        self.request_id = request_id
        self.reason = reason


class SettlementInProgress(RaffleError):
    """A call reached the raffle while a winner's payout was being sent."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} refused: payout in flight")
        self.operation = operation
