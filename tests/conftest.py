import pytest

from vrf_raffle.config import Settings
from vrf_raffle.events import EventHub, EventRecorder
from vrf_raffle.oracle import LocalCoordinator
from vrf_raffle.payout import InMemoryBank
from vrf_raffle.raffle import Raffle

FEE = 10 ** 17  # 0.1 unit
INTERVAL = 3600


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(entry_fee=FEE, interval_s=INTERVAL, subscription_id=7)


@pytest.fixture
def oracle(settings):
    return LocalCoordinator(settings.gas_lane, settings.subscription_id)


@pytest.fixture
def bank():
    return InMemoryBank()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def raffle(settings, oracle, bank, clock, recorder):
    hub = EventHub()
    hub.subscribe(recorder)
    return Raffle(settings, oracle, bank, clock=clock, events=hub)


@pytest.fixture
def drawing_raffle(raffle, clock):
    """Three entrants, interval elapsed, draw requested."""
    for player in ("alice", "bob", "carol"):
        raffle.enter(player, FEE)
    clock.advance(INTERVAL + 1)
    raffle.request_draw()
    return raffle
