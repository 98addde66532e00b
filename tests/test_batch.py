from datetime import date, timedelta

from swingtrack.simulator import (
    Bar,
    LevelPlan,
    ReplayJob,
    TradeSimulator,
    assess_batch,
    open_positions,
    replay_batch,
)

PLAN = LevelPlan(entry=100.0, stop=95.0, target1=104.0, target2=110.0)


def _bars(rows):
    start = date(2024, 6, 3)
    return [
        Bar(date=start + timedelta(days=index), open=o, high=h, low=l, close=c)
        for index, (o, h, l, c) in enumerate(rows)
    ]


def _jobs():
    winner = _bars([(99.5, 101.5, 99.2, 101.0), (101.5, 111.0, 101.0, 110.5)])
    loser = _bars([(99.5, 101.5, 99.2, 101.0), (101.0, 102.0, 100.5, 101.5), (101.0, 102.0, 94.0, 95.5)])
    holding = _bars([(99.5, 101.5, 99.2, 101.0), (101.5, 108.0, 101.0, 107.0)])
    waiting = _bars([(98.0, 99.5, 97.5, 99.0)])
    broken = _bars([(98.0, 99.5, 97.5, 99.0)]) * 2
    return [
        ReplayJob("WIN", PLAN, winner),
        ReplayJob("LOSS", PLAN, loser),
        ReplayJob("HOLD", PLAN, holding),
        ReplayJob("WAIT", PLAN, waiting),
        ReplayJob("BROKEN", PLAN, broken),
    ]


def test_batch_preserves_order_and_isolates_errors():
    outcomes = replay_batch(TradeSimulator(), _jobs(), max_workers=3)

    assert [outcome.symbol for outcome in outcomes] == ["WIN", "LOSS", "HOLD", "WAIT", "BROKEN"]
    assert outcomes[-1].state is None
    assert "Duplicate bar" in outcomes[-1].error
    assert outcomes[0].state.status.value == "FULL_EXIT"


def test_assess_batch():
    outcomes = replay_batch(TradeSimulator(), _jobs())

    assessment = assess_batch(outcomes)

    assert assessment.total == 5
    assert assessment.entered == 3
    assert assessment.winners == 2
    assert assessment.win_rate == 2 / 3
    assert assessment.status_counts == {"FULL_EXIT": 1, "STOPPED_OUT": 1, "PARTIAL_EXIT": 1, "WAITING": 1}
    assert assessment.target_hits == {"T1_HIT": 2, "T2_HIT": 1, "T3_HIT": 0}
    assert list(assessment.errors) == ["BROKEN"]
    assert open_positions(outcomes) == ["HOLD"]


def test_empty_batch():
    assert replay_batch(TradeSimulator(), []) == []
    assessment = assess_batch([])
    assert assessment.total == 0
    assert assessment.win_rate == 0.0
