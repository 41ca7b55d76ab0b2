import pytest

from vrf_raffle.errors import IndexOutOfRange, InsufficientFee, RoundNotOpen
from vrf_raffle.events import EntryRecorded, EventHub, EventRecorder
from vrf_raffle.ledger import EntryLedger, RaffleState, Round

FEE = 100


@pytest.fixture
def parts():
    hub = EventHub()
    rec = EventRecorder()
    hub.subscribe(rec)
    r = Round(round_start_time=10.0)
    return r, EntryLedger(r, FEE, hub), rec


def test_enter_appends_and_collects_fee(parts):
    r, ledger, _ = parts
    for i in range(1, 4):
        count = ledger.enter(f"p{i}", FEE)
        assert count == i
        assert ledger.entrant_count == i
        assert ledger.collected_balance == FEE * i


def test_duplicate_entries_are_separate_tickets(parts):
    _, ledger, _ = parts
    ledger.enter("alice", FEE)
    ledger.enter("alice", FEE)
    assert ledger.entrants == ("alice", "alice")
    assert ledger.collected_balance == 2 * FEE


def test_underpaying_is_rejected_without_mutation(parts):
    r, ledger, rec = parts
    with pytest.raises(InsufficientFee) as exc:
        ledger.enter("alice", FEE - 1)
    assert exc.value.paid == FEE - 1
    assert exc.value.required == FEE
    assert r.entrants == []
    assert r.collected_balance == 0
    assert rec.events == []


@pytest.mark.parametrize("paid", [0, FEE, FEE * 10])
def test_drawing_round_rejects_any_payment(parts, paid):
    r, ledger, _ = parts
    r.state = RaffleState.DRAWING
    with pytest.raises(RoundNotOpen):
        ledger.enter("alice", paid)
    assert r.entrants == []


def test_overpayment_kept_out_of_collected_balance(parts):
    r, ledger, _ = parts
    ledger.enter("alice", FEE + 30)
    assert ledger.collected_balance == FEE
    assert r.surplus == 30
    assert ledger.pot == FEE + 30


def test_entry_emits_event_with_running_count(parts):
    _, ledger, rec = parts
    ledger.enter("alice", FEE)
    ledger.enter("bob", FEE)
    assert rec.of_type(EntryRecorded) == [
        EntryRecorded("alice", 1),
        EntryRecorded("bob", 2),
    ]


def test_participant_at(parts):
    _, ledger, _ = parts
    ledger.enter("alice", FEE)
    ledger.enter("bob", FEE)
    assert ledger.participant_at(0) == "alice"
    assert ledger.participant_at(1) == "bob"
    with pytest.raises(IndexOutOfRange):
        ledger.participant_at(2)
    with pytest.raises(IndexOutOfRange):
        ledger.participant_at(-1)


def test_reset_clears_round_and_refreshes_start(parts):
    r, ledger, _ = parts
    ledger.enter("alice", FEE + 5)
    ledger.reset(99.0)
    assert r.entrants == []
    assert r.collected_balance == 0
    assert r.surplus == 0
    assert r.round_start_time == 99.0
