from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.domain import PlayerStats, PlayerSummary, Transfer
from app.storage.repository import EntryRow, PlayerRow, SessionRow


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: Any | None = None


class PlayerRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, examples=["老王"])


class PlayerResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: PlayerRow) -> "PlayerResponse":
        return cls(id=row.id, name=row.name, created_at=row.created_at)


class CreateSessionRequest(BaseModel):
    note: str | None = Field(default=None, max_length=256, examples=["周五晚老王家"])
    played_at: datetime | None = Field(
        default=None,
        description="When the game was played; defaults to now",
        examples=["2024-05-17T20:00:00+08:00"],
    )


class SessionResponse(BaseModel):
    id: str
    note: str | None
    status: Literal["open", "settled"]
    created_at: datetime

    @classmethod
    def from_row(cls, row: SessionRow) -> "SessionResponse":
        return cls(id=row.id, note=row.note, status=row.status.value, created_at=row.created_at)


class AddEntryRequest(BaseModel):
    player_id: str
    buy_in: float | None = Field(default=None, ge=0, description="Defaults to the configured buy-in")


class UpdateBuyInRequest(BaseModel):
    buy_in: float = Field(..., ge=0, examples=[800])


class CashOutRequest(BaseModel):
    remaining: float = Field(..., ge=0, description="Chips left at the table", examples=[550])
    early: float = Field(default=0, ge=0, description="Chips cashed out before the end", examples=[50])


class EntryResponse(BaseModel):
    id: str
    player_id: str
    player_name: str
    buy_in: float
    cash_out: float | None
    net: float | None

    @classmethod
    def from_row(cls, row: EntryRow) -> "EntryResponse":
        return cls(
            id=row.id,
            player_id=row.player_id,
            player_name=row.player_name,
            buy_in=float(row.buy_in),
            cash_out=None if row.cash_out is None else float(row.cash_out),
            net=None if row.cash_out is None else float(row.cash_out - row.buy_in),
        )


class TransferResponse(BaseModel):
    from_player_id: str
    from_name: str
    to_player_id: str
    to_name: str
    amount: float

    @classmethod
    def from_transfer(cls, transfer: Transfer) -> "TransferResponse":
        return cls(
            from_player_id=transfer.from_player_id,
            from_name=transfer.from_name,
            to_player_id=transfer.to_player_id,
            to_name=transfer.to_name,
            amount=float(transfer.amount),
        )


class SessionDetailResponse(BaseModel):
    session: SessionResponse
    entries: list[EntryResponse]
    transfers: list[TransferResponse]
    total_buy_in: float
    total_cash_out: float


class SettleResponse(BaseModel):
    session_id: str
    transfers: list[TransferResponse]
    text: str


class PreviewEntry(BaseModel):
    player_id: str
    name: str
    buy_in: float = Field(..., ge=0)
    cash_out: float | None = Field(default=None, ge=0)


class PreviewRequest(BaseModel):
    entries: list[PreviewEntry]
    note: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "entries": [
                        {"player_id": "a", "name": "A", "buy_in": 400, "cash_out": 600},
                        {"player_id": "b", "name": "B", "buy_in": 400, "cash_out": 200},
                    ],
                    "note": "周五晚老王家",
                }
            ]
        }
    }


class PreviewResponse(BaseModel):
    error: str | None
    transfers: list[TransferResponse]
    text: str | None


class PlayerStatsResponse(BaseModel):
    player_id: str
    name: str
    total_sessions: int
    total_profit: float
    avg_profit: float
    win_rate: int
    max_win: float
    max_loss: float

    @classmethod
    def from_stats(cls, stats: PlayerStats) -> "PlayerStatsResponse":
        return cls(
            player_id=stats.player_id,
            name=stats.name,
            total_sessions=stats.total_sessions,
            total_profit=float(stats.total_profit),
            avg_profit=float(stats.avg_profit),
            win_rate=stats.win_rate,
            max_win=float(stats.max_win),
            max_loss=float(stats.max_loss),
        )


class CumulativePointResponse(BaseModel):
    session_id: str
    played_at: datetime
    cumulative: float


class MonthlySummaryResponse(BaseModel):
    month: str
    profit: float
    sessions: int


class PlayerSummaryResponse(BaseModel):
    period: str
    stats: PlayerStatsResponse
    cumulative: list[CumulativePointResponse]
    monthly: list[MonthlySummaryResponse]

    @classmethod
    def from_summary(cls, summary: PlayerSummary) -> "PlayerSummaryResponse":
        return cls(
            period=summary.period,
            stats=PlayerStatsResponse.from_stats(summary.stats),
            cumulative=[
                CumulativePointResponse(
                    session_id=point.session_id,
                    played_at=point.played_at,
                    cumulative=float(point.cumulative),
                )
                for point in summary.cumulative
            ],
            monthly=[
                MonthlySummaryResponse(month=month.month, profit=float(month.profit), sessions=month.sessions)
                for month in summary.monthly
            ],
        )
