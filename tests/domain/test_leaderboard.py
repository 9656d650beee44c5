from datetime import datetime
from decimal import Decimal

import pytest

from app.domain import DomainValidationError, PlayerResult, build_leaderboard, summarize_player


def result(player: str, session: str, played_at: datetime, net: str) -> PlayerResult:
    return PlayerResult(
        player_id=f"player-{player}",
        name=player,
        session_id=session,
        played_at=played_at,
        net=Decimal(net),
    )


RESULTS = [
    result("A", "s1", datetime(2025, 1, 10, 20), "200"),
    result("B", "s1", datetime(2025, 1, 10, 20), "-200"),
    result("A", "s2", datetime(2025, 2, 7, 20), "-50"),
    result("B", "s2", datetime(2025, 2, 7, 20), "150"),
    result("C", "s2", datetime(2025, 2, 7, 20), "-100"),
    result("A", "s3", datetime(2025, 2, 21, 20), "100"),
    result("C", "s3", datetime(2025, 2, 21, 20), "-100"),
]


def test_leaderboard_by_total_profit() -> None:
    board = build_leaderboard(RESULTS)

    assert [(s.name, s.total_profit) for s in board] == [
        ("A", Decimal("250")),
        ("B", Decimal("-50")),
        ("C", Decimal("-200")),
    ]
    a = board[0]
    assert a.total_sessions == 3
    assert a.win_rate == 67
    assert a.avg_profit == Decimal("83.33")
    assert a.max_win == Decimal("200")
    assert a.max_loss == Decimal("-50")


def test_leaderboard_sort_is_stable_for_ties() -> None:
    board = build_leaderboard(RESULTS, sort_by="total_sessions")

    assert [s.name for s in board] == ["A", "B", "C"]


def test_leaderboard_rejects_unknown_sort() -> None:
    with pytest.raises(DomainValidationError):
        build_leaderboard(RESULTS, sort_by="name")


def test_player_summary_cumulative_and_monthly() -> None:
    summary = summarize_player(RESULTS, player_id="player-A", name="A")

    assert [point.cumulative for point in summary.cumulative] == [Decimal("200"), Decimal("150"), Decimal("250")]
    assert [(m.month, m.profit, m.sessions) for m in summary.monthly] == [
        ("2025-01", Decimal("200"), 1),
        ("2025-02", Decimal("50"), 2),
    ]


def test_player_summary_period_filter() -> None:
    summary = summarize_player(
        RESULTS,
        player_id="player-A",
        name="A",
        period="30d",
        now=datetime(2025, 3, 1),
    )

    assert summary.stats.total_sessions == 2
    assert summary.stats.total_profit == Decimal("50")
    assert summary.stats.win_rate == 50


def test_player_without_results() -> None:
    summary = summarize_player([], player_id="player-Z", name="Z")

    assert summary.stats.total_sessions == 0
    assert summary.stats.win_rate == 0
    assert summary.cumulative == []
