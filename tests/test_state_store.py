import json
from datetime import date
from pathlib import Path

import pytest

from swingtrack.errors import DataGapError
from swingtrack.runtime import load_simulation_state, save_simulation_state
from swingtrack.simulator import Bar, LevelPlan, bar_from_record, bar_to_record, load_bars, simulate

DATA = Path(__file__).resolve().parents[1] / "data"


def _state():
    plan = LevelPlan(entry=100.0, stop=95.0, target1=104.0, target2=110.0)
    bars = [
        Bar(date=date(2024, 6, 3), open=99.5, high=101.5, low=99.2, close=101.0),
        Bar(date=date(2024, 6, 4), open=101.5, high=108.0, low=101.0, close=107.0),
    ]
    return simulate(plan, bars)


def test_state_survives_save_and_load(tmp_path):
    state = _state()
    path = tmp_path / "states" / "SAMPLE.json"

    save_simulation_state(path, state, extra={"symbol": "SAMPLE"})
    restored = load_simulation_state(path)

    assert restored == state
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["symbol"] == "SAMPLE"
    assert payload["status"] == "PARTIAL_EXIT"
    assert payload["events"][1]["entry_quality"] == {"quality": "GOOD", "premium_pct": 1.5}
    assert "₹" in path.read_text(encoding="utf-8")


def test_bar_records(tmp_path):
    record = {"date": "2024-06-03T00:00:00", "open": "99.5", "high": 101.5, "low": 99.2, "close": 101}

    bar = bar_from_record(record)

    assert bar.date == date(2024, 6, 3)
    assert bar.open == 99.5
    assert bar_to_record(bar)["date"] == "2024-06-03"
    with pytest.raises(DataGapError):
        bar_from_record({"date": "2024-06-03", "open": 1.0})

    path = tmp_path / "bars.json"
    path.write_text(json.dumps({"bars": [record]}), encoding="utf-8")
    assert load_bars(path) == [bar]


def test_sample_bars_replay_cleanly():
    bars = load_bars(DATA / "sample_bars.json")
    plan = LevelPlan(entry=100.0, stop=97.0, target1=105.0, target2=110.0, target3=115.0)

    state = simulate(plan, bars)

    assert len(bars) == 7
    assert state.status.value == "STOPPED_OUT"
    assert [event.type.value for event in state.events][-3:] == ["T1_HIT", "T2_HIT", "TRAILING_STOP"]
    assert state.qty_balanced
