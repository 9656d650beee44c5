from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import PlainTextResponse

from app.api.errors import domain_error
from app.api.schemas import (
    AddEntryRequest,
    CashOutRequest,
    CreateSessionRequest,
    EntryResponse,
    SessionDetailResponse,
    SessionResponse,
    SettleResponse,
    TransferResponse,
    UpdateBuyInRequest,
)
from app.domain import DomainValidationError
from app.runtime import get_service
from app.service import LedgerService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=list[SessionResponse], summary="Latest sessions first")
def list_sessions(
    limit: int = Query(default=20, ge=1, le=200),
    service: LedgerService = Depends(get_service),
) -> list[SessionResponse]:
    return [SessionResponse.from_row(row) for row in service.list_sessions(limit=limit)]


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a new session",
)
def create_session(payload: CreateSessionRequest, service: LedgerService = Depends(get_service)) -> SessionResponse:
    return SessionResponse.from_row(service.open_session(payload.note, played_at=payload.played_at))


@router.get("/{session_id}", response_model=SessionDetailResponse, summary="Session with entries and transfers")
def get_session(session_id: str, service: LedgerService = Depends(get_service)) -> SessionDetailResponse:
    try:
        detail = service.get_session(session_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc

    return SessionDetailResponse(
        session=SessionResponse.from_row(detail["session"]),
        entries=[EntryResponse.from_row(row) for row in detail["entries"]],
        transfers=[TransferResponse.from_transfer(t) for t in detail["transfers"]],
        total_buy_in=float(detail["total_buy_in"]),
        total_cash_out=float(detail["total_cash_out"]),
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a session and its records")
def delete_session(session_id: str, service: LedgerService = Depends(get_service)) -> Response:
    try:
        service.delete_session(session_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{session_id}/entries",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Seat a player in the session",
)
def add_entry(
    session_id: str,
    payload: AddEntryRequest,
    service: LedgerService = Depends(get_service),
) -> EntryResponse:
    try:
        return EntryResponse.from_row(service.add_entry(session_id, payload.player_id, payload.buy_in))
    except DomainValidationError as exc:
        raise domain_error(exc) from exc


@router.patch("/{session_id}/entries/{entry_id}", response_model=EntryResponse, summary="Change a buy-in")
def update_buy_in(
    session_id: str,
    entry_id: str,
    payload: UpdateBuyInRequest,
    service: LedgerService = Depends(get_service),
) -> EntryResponse:
    try:
        return EntryResponse.from_row(service.update_buy_in(session_id, entry_id, payload.buy_in))
    except DomainValidationError as exc:
        raise domain_error(exc) from exc


@router.delete(
    "/{session_id}/entries/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a player from the session",
)
def delete_entry(session_id: str, entry_id: str, service: LedgerService = Depends(get_service)) -> Response:
    try:
        service.remove_entry(session_id, entry_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{session_id}/entries/{entry_id}/cash-out", response_model=EntryResponse, summary="Record a cash-out")
def record_cash_out(
    session_id: str,
    entry_id: str,
    payload: CashOutRequest,
    service: LedgerService = Depends(get_service),
) -> EntryResponse:
    try:
        row = service.record_cash_out(session_id, entry_id, payload.remaining, payload.early)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return EntryResponse.from_row(row)


@router.delete("/{session_id}/entries/{entry_id}/cash-out", response_model=EntryResponse, summary="Clear a cash-out")
def clear_cash_out(session_id: str, entry_id: str, service: LedgerService = Depends(get_service)) -> EntryResponse:
    try:
        return EntryResponse.from_row(service.clear_cash_out(session_id, entry_id))
    except DomainValidationError as exc:
        raise domain_error(exc) from exc


@router.post("/{session_id}/settle", response_model=SettleResponse, summary="Validate, calculate and store transfers")
def settle_session(session_id: str, service: LedgerService = Depends(get_service)) -> SettleResponse:
    try:
        result = service.settle_session(session_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc

    return SettleResponse(
        session_id=result["session_id"],
        transfers=[TransferResponse.from_transfer(t) for t in result["transfers"]],
        text=result["text"],
    )


@router.post("/{session_id}/reopen", response_model=SessionResponse, summary="Discard transfers and reopen")
def reopen_session(session_id: str, service: LedgerService = Depends(get_service)) -> SessionResponse:
    try:
        return SessionResponse.from_row(service.reopen_session(session_id))
    except DomainValidationError as exc:
        raise domain_error(exc) from exc


@router.get("/{session_id}/settlement", response_model=list[TransferResponse], summary="Stored transfers")
def get_settlement(session_id: str, service: LedgerService = Depends(get_service)) -> list[TransferResponse]:
    try:
        transfers = service.get_settlement(session_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return [TransferResponse.from_transfer(t) for t in transfers]


@router.get("/{session_id}/settlement/text", response_class=PlainTextResponse, summary="Shareable settlement text")
def get_settlement_text(session_id: str, service: LedgerService = Depends(get_service)) -> str:
    try:
        return service.settlement_text(session_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
