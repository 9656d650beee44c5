from fastapi import APIRouter, Depends, Query

from app.api.errors import domain_error
from app.api.schemas import PlayerStatsResponse, PlayerSummaryResponse
from app.domain import DomainValidationError
from app.runtime import get_service
from app.service import LedgerService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/leaderboard", response_model=list[PlayerStatsResponse])
def leaderboard(
    sort_by: str = Query(default="total_profit", pattern="^(total_profit|win_rate|total_sessions|avg_profit)$"),
    service: LedgerService = Depends(get_service),
) -> list[PlayerStatsResponse]:
    try:
        board = service.leaderboard(sort_by=sort_by)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return [PlayerStatsResponse.from_stats(stats) for stats in board]


@router.get("/players/{player_id}", response_model=PlayerSummaryResponse)
def player_stats(
    player_id: str,
    period: str = Query(default="all", pattern="^(all|30d|90d)$"),
    service: LedgerService = Depends(get_service),
) -> PlayerSummaryResponse:
    try:
        summary = service.player_stats(player_id, period=period)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return PlayerSummaryResponse.from_summary(summary)
