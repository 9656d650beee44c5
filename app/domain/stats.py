"""Leaderboard and per-player aggregates over settled session results."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from .ledger import ZERO, DomainValidationError, round_amount

LEADERBOARD_SORT_KEYS = ("total_profit", "win_rate", "total_sessions", "avg_profit")
PERIOD_DAYS: dict[str, int | None] = {"all": None, "30d": 30, "90d": 90}


@dataclass(frozen=True)
class PlayerResult:
    player_id: str
    name: str
    session_id: str
    played_at: datetime
    net: Decimal


@dataclass(frozen=True)
class PlayerStats:
    player_id: str
    name: str
    total_sessions: int
    total_profit: Decimal
    avg_profit: Decimal
    win_rate: int
    max_win: Decimal
    max_loss: Decimal


@dataclass(frozen=True)
class CumulativePoint:
    session_id: str
    played_at: datetime
    cumulative: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    month: str
    profit: Decimal
    sessions: int


@dataclass(frozen=True)
class PlayerSummary:
    stats: PlayerStats
    period: str
    cumulative: list[CumulativePoint] = field(default_factory=list)
    monthly: list[MonthlySummary] = field(default_factory=list)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def compute_stats(player_id: str, name: str, profits: Sequence[Decimal]) -> PlayerStats:
    total_sessions = len(profits)
    total_profit = sum(profits, ZERO)
    wins = sum(1 for profit in profits if profit > 0)
    if total_sessions:
        avg_profit = round_amount(total_profit / total_sessions)
        win_rate = int((Decimal(wins * 100) / total_sessions).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    else:
        avg_profit = ZERO
        win_rate = 0

    return PlayerStats(
        player_id=player_id,
        name=name,
        total_sessions=total_sessions,
        total_profit=round_amount(total_profit),
        avg_profit=avg_profit,
        win_rate=win_rate,
        max_win=max(profits, default=ZERO),
        max_loss=min(profits, default=ZERO),
    )


def build_leaderboard(results: Iterable[PlayerResult], sort_by: str = "total_profit") -> list[PlayerStats]:
    if sort_by not in LEADERBOARD_SORT_KEYS:
        raise DomainValidationError(f"unsupported leaderboard sort: {sort_by}")

    names: dict[str, str] = {}
    profits: dict[str, list[Decimal]] = {}
    for result in results:
        names.setdefault(result.player_id, result.name)
        profits.setdefault(result.player_id, []).append(result.net)

    board = [compute_stats(player_id, names[player_id], player_profits) for player_id, player_profits in profits.items()]
    board.sort(key=lambda stats: getattr(stats, sort_by), reverse=True)
    return board


def summarize_player(
    results: Iterable[PlayerResult],
    *,
    player_id: str,
    name: str,
    period: str = "all",
    now: datetime | None = None,
) -> PlayerSummary:
    if period not in PERIOD_DAYS:
        raise DomainValidationError(f"unsupported period: {period}")

    selected = sorted(
        (result for result in results if result.player_id == player_id),
        key=lambda result: result.played_at,
    )
    days = PERIOD_DAYS[period]
    if days is not None:
        cutoff = (now or utcnow()) - timedelta(days=days)
        selected = [result for result in selected if result.played_at >= cutoff]

    cumulative: list[CumulativePoint] = []
    running = ZERO
    monthly: dict[str, list[Decimal]] = {}
    for result in selected:
        running += result.net
        cumulative.append(CumulativePoint(session_id=result.session_id, played_at=result.played_at, cumulative=running))
        monthly.setdefault(result.played_at.strftime("%Y-%m"), []).append(result.net)

    return PlayerSummary(
        stats=compute_stats(player_id, name, [result.net for result in selected]),
        period=period,
        cumulative=cumulative,
        monthly=[
            MonthlySummary(month=month, profit=sum(nets, ZERO), sessions=len(nets))
            for month, nets in monthly.items()
        ],
    )
