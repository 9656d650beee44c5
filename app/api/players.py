from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from app.api.errors import domain_error
from app.api.schemas import PlayerRequest, PlayerResponse
from app.domain import DomainValidationError
from app.runtime import get_service
from app.service import LedgerService

router = APIRouter(prefix="/players", tags=["players"])


@router.get("", response_model=list[PlayerResponse], summary="List players by name")
def list_players(service: LedgerService = Depends(get_service)) -> list[PlayerResponse]:
    return [PlayerResponse.from_row(row) for row in service.list_players()]


@router.post(
    "",
    response_model=PlayerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a player",
)
def create_player(payload: PlayerRequest, service: LedgerService = Depends(get_service)) -> PlayerResponse:
    try:
        return PlayerResponse.from_row(service.add_player(payload.name))
    except DomainValidationError as exc:
        raise domain_error(exc) from exc


@router.patch("/{player_id}", response_model=PlayerResponse, summary="Rename a player")
def rename_player(
    player_id: str,
    payload: PlayerRequest,
    service: LedgerService = Depends(get_service),
) -> PlayerResponse:
    try:
        return PlayerResponse.from_row(service.rename_player(player_id, payload.name))
    except DomainValidationError as exc:
        raise domain_error(exc) from exc


@router.delete("/{player_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a player without entries")
def delete_player(player_id: str, service: LedgerService = Depends(get_service)) -> Response:
    try:
        service.remove_player(player_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
