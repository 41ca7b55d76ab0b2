import json

import pytest

from vrf_raffle.cli import build_parser
from vrf_raffle.draw import pick_winner_index, to_raw, to_units
from vrf_raffle.verify import verify_audit


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("RAFFLE_ENTRY_FEE", "RAFFLE_INTERVAL_S", "RAFFLE_DRAW_TIMEOUT_S"):
        monkeypatch.delenv(name, raising=False)


def run(argv):
    args = build_parser().parse_args(argv)
    return args.func(args)


def test_simulate_writes_verifiable_audit(tmp_path, capsys):
    out = tmp_path / "settlement.json"
    code = run([
        "simulate", "--player", "p0", "--player", "p1", "--player", "p2",
        "--entry-fee", "0.1", "--interval", "3600", "--word", "12", "--out", str(out),
    ])
    assert code == 0

    audit = json.loads(out.read_text())
    s = audit["settlement"]
    assert s["winner"] == "p0"
    assert s["winner_index"] == 0
    assert int(s["payout"]) == 3 * 10 ** 17
    assert audit["metadata"]["entry_fee"] == str(10 ** 17)

    result = verify_audit(str(out))
    assert result["ok"] is True
    assert result["winner"] == "p0"

    assert run(["verify", "--audit", str(out)]) == 0
    assert "AUDIT VERIFIED" in capsys.readouterr().out


def test_verify_detects_tampered_winner(tmp_path):
    out = tmp_path / "settlement.json"
    run(["simulate", "--player", "a", "--player", "b", "--word", "1", "--out", str(out)])
    audit = json.loads(out.read_text())
    audit["settlement"]["winner"] = "a"
    out.write_text(json.dumps(audit))
    with pytest.raises(RuntimeError, match="Winner mismatch"):
        verify_audit(str(out))


def test_verify_detects_short_payout(tmp_path):
    out = tmp_path / "settlement.json"
    run(["simulate", "--player", "a", "--out", str(out)])
    audit = json.loads(out.read_text())
    audit["settlement"]["payout"] = "1"
    out.write_text(json.dumps(audit))
    with pytest.raises(RuntimeError, match="Payout mismatch"):
        verify_audit(str(out))


def test_unit_conversion():
    assert to_raw("0.1") == 10 ** 17
    assert str(to_units(3 * 10 ** 17)) == "0.3"
    with pytest.raises(ValueError):
        to_raw("0.0000000000000000001")


def test_pick_winner_index_bounds():
    assert pick_winner_index(12, 3) == 0
    assert pick_winner_index(2 ** 256 - 1, 1) == 0
    with pytest.raises(ValueError):
        pick_winner_index(5, 0)


@pytest.mark.parametrize("fee", ["abc", "0.0000000000000000001"])
def test_simulate_rejects_bad_entry_fee(fee):
    with pytest.raises(SystemExit, match="Invalid --entry-fee"):
        run(["simulate", "--player", "a", "--entry-fee", fee])
