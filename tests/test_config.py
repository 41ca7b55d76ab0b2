import pytest

from vrf_raffle.config import Settings
from vrf_raffle.errors import ConfigError
from vrf_raffle.project_constants import ENTRY_FEE_RAW, NUM_WORDS

ENV_VARS = [
    "RAFFLE_ENTRY_FEE",
    "RAFFLE_INTERVAL_S",
    "RAFFLE_GAS_LANE",
    "RAFFLE_SUBSCRIPTION_ID",
    "RAFFLE_CALLBACK_GAS_LIMIT",
    "RAFFLE_REQUEST_CONFIRMATIONS",
    "RAFFLE_DRAW_TIMEOUT_S",
    "ORACLE_RPC_URL",
    "PAYOUT_RPC_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = Settings.from_env()
    assert s.entry_fee == ENTRY_FEE_RAW
    assert s.num_words == NUM_WORDS
    assert s.draw_timeout_s is None
    assert s.oracle_rpc_url is None


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("RAFFLE_ENTRY_FEE", "100000000000000000")
    monkeypatch.setenv("RAFFLE_INTERVAL_S", "3600")
    monkeypatch.setenv("RAFFLE_SUBSCRIPTION_ID", "42")
    monkeypatch.setenv("RAFFLE_DRAW_TIMEOUT_S", "900")
    monkeypatch.setenv("ORACLE_RPC_URL", "http://oracle.test")
    s = Settings.from_env()
    assert s.entry_fee == 10 ** 17
    assert s.interval_s == 3600
    assert s.subscription_id == 42
    assert s.draw_timeout_s == 900
    assert s.oracle_rpc_url == "http://oracle.test"


def test_overrides_win(monkeypatch):
    monkeypatch.setenv("RAFFLE_ENTRY_FEE", "5")
    s = Settings.from_env(entry_fee_override=7, interval_override=1.5)
    assert s.entry_fee == 7
    assert s.interval_s == 1.5


def test_bad_number(monkeypatch):
    monkeypatch.setenv("RAFFLE_ENTRY_FEE", "lots")
    with pytest.raises(ConfigError, match="RAFFLE_ENTRY_FEE"):
        Settings.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [{"entry_fee": 0}, {"interval_s": -1}, {"num_words": 2}, {"draw_timeout_s": 0}],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ConfigError):
        Settings(**kwargs)
