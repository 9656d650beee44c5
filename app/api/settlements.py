from __future__ import annotations

from fastapi import APIRouter

from app.api.errors import api_error, domain_error
from app.api.schemas import PreviewRequest, PreviewResponse, TransferResponse
from app.domain import (
    DomainValidationError,
    PlayerEntry,
    calculate_settlement,
    format_settlement_text,
    validate_zero_sum,
)

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/preview", response_model=PreviewResponse, summary="Dry-run a settlement without storing it")
def preview_settlement(payload: PreviewRequest) -> PreviewResponse:
    player_ids = [item.player_id for item in payload.entries]
    duplicates = sorted({player_id for player_id in player_ids if player_ids.count(player_id) > 1})
    if duplicates:
        raise api_error(
            code="validation_error",
            message="players must be unique",
            details={"player_ids": duplicates},
        )

    try:
        entries = [
            PlayerEntry(
                player_id=item.player_id,
                display_name=item.name,
                buy_in=item.buy_in,
                cash_out=item.cash_out,
            )
            for item in payload.entries
        ]
    except DomainValidationError as exc:
        raise domain_error(exc) from exc

    error = validate_zero_sum(entries)
    if error is not None:
        return PreviewResponse(error=error, transfers=[], text=None)

    transfers = calculate_settlement(entries)
    return PreviewResponse(
        error=None,
        transfers=[TransferResponse.from_transfer(t) for t in transfers],
        text=format_settlement_text(transfers, payload.note),
    )
