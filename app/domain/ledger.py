from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


class DomainValidationError(ValueError):
    """Raised when a ledger rule is violated."""


class NotFoundError(DomainValidationError):
    """Raised when a player, session or entry does not exist."""


class SessionStateError(DomainValidationError):
    """Raised when an operation does not fit the session status."""


class SessionStatus(str, Enum):
    OPEN = "open"
    SETTLED = "settled"


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, bool):
        raise DomainValidationError(f"invalid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError as exc:
        raise DomainValidationError(f"invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise DomainValidationError(f"invalid amount: {value!r}")
    return amount


def round_amount(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Render an amount the way players type it: ``200``, ``66.5``, ``66.67``."""
    if value == 0:
        return "0"
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), "f")


def normalize_name(name: str) -> str:
    value = name.strip()
    if not value:
        raise DomainValidationError("player name must be non-empty")
    return value


@dataclass(frozen=True)
class PlayerPosition:
    player_id: str
    display_name: str
    net_amount: Decimal


@dataclass(frozen=True)
class PlayerEntry:
    player_id: str
    display_name: str
    buy_in: Decimal
    cash_out: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "buy_in", to_decimal(self.buy_in))
        if self.cash_out is not None:
            object.__setattr__(self, "cash_out", to_decimal(self.cash_out))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PlayerEntry":
        """Build an entry from the stored shape ``{buy_in, cash_out, player_id, players: {name}}``."""
        player = record.get("players") or {}
        return cls(
            player_id=str(record["player_id"]),
            display_name=str(player.get("name", record["player_id"])),
            buy_in=record["buy_in"],
            cash_out=record.get("cash_out"),
        )

    @property
    def settled_cash_out(self) -> Decimal:
        return self.cash_out if self.cash_out is not None else ZERO

    @property
    def position(self) -> PlayerPosition:
        return PlayerPosition(
            player_id=self.player_id,
            display_name=self.display_name,
            net_amount=self.settled_cash_out - self.buy_in,
        )


@dataclass(frozen=True)
class Transfer:
    from_player_id: str
    from_name: str
    to_player_id: str
    to_name: str
    amount: Decimal

    def to_record(self) -> dict[str, Any]:
        return {
            "from_player_id": self.from_player_id,
            "to_player_id": self.to_player_id,
            "amount": self.amount,
        }
