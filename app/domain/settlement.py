"""Zero-sum validation and greedy transfer calculation for a poker session."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from .ledger import (
    CENT,
    ZERO,
    DomainValidationError,
    PlayerEntry,
    PlayerPosition,
    Transfer,
    format_amount,
    round_amount,
)

# Tolerance for both the zero-sum check and "balance is drained" comparisons.
SETTLEMENT_TOLERANCE = CENT


@dataclass(frozen=True)
class ZeroSumCheck:
    total_buy_in: Decimal
    total_cash_out: Decimal

    @property
    def diff(self) -> Decimal:
        return self.total_buy_in - self.total_cash_out

    @property
    def ok(self) -> bool:
        return abs(self.diff) <= SETTLEMENT_TOLERANCE

    @property
    def error(self) -> str | None:
        if self.ok:
            return None
        return (
            f"总买入 {format_amount(self.total_buy_in)} ≠ "
            f"总结算 {format_amount(self.total_cash_out)}，"
            f"差额 {format_amount(self.diff)}"
        )


class SettlementImbalanceError(DomainValidationError):
    """Raised when a settlement is requested for entries that do not sum to zero."""

    def __init__(self, check: ZeroSumCheck) -> None:
        super().__init__(check.error)
        self.check = check


@dataclass
class _OpenBalance:
    position: PlayerPosition
    remaining: Decimal


def check_zero_sum(entries: Iterable[PlayerEntry]) -> ZeroSumCheck:
    """Total buy-in against total cash-out. An unset cash-out counts as 0."""
    total_buy_in = ZERO
    total_cash_out = ZERO
    for entry in entries:
        total_buy_in += entry.buy_in
        total_cash_out += entry.settled_cash_out
    return ZeroSumCheck(total_buy_in=total_buy_in, total_cash_out=total_cash_out)


def validate_zero_sum(entries: Iterable[PlayerEntry]) -> str | None:
    return check_zero_sum(entries).error


def build_transfers(positions: Iterable[PlayerPosition]) -> list[Transfer]:
    """Match the largest debts against the largest winnings until one side runs out.

    Both sorts are stable, so players with equal amounts keep their input order.
    Whatever is left on the longer side of an unbalanced input is dropped.
    """
    ordered = list(positions)
    winners = sorted(
        (_OpenBalance(p, p.net_amount) for p in ordered if p.net_amount > 0),
        key=lambda balance: -balance.remaining,
    )
    losers = sorted(
        (_OpenBalance(p, p.net_amount) for p in ordered if p.net_amount < 0),
        key=lambda balance: balance.remaining,
    )

    transfers: list[Transfer] = []
    winner_idx = 0
    loser_idx = 0
    while winner_idx < len(winners) and loser_idx < len(losers):
        winner = winners[winner_idx]
        loser = losers[loser_idx]

        settle_amount = min(winner.remaining, -loser.remaining)
        amount = round_amount(settle_amount)
        if amount > 0:
            transfers.append(
                Transfer(
                    from_player_id=loser.position.player_id,
                    from_name=loser.position.display_name,
                    to_player_id=winner.position.player_id,
                    to_name=winner.position.display_name,
                    amount=amount,
                )
            )

        winner.remaining -= settle_amount
        loser.remaining += settle_amount

        if abs(winner.remaining) < SETTLEMENT_TOLERANCE:
            winner_idx += 1
        if abs(loser.remaining) < SETTLEMENT_TOLERANCE:
            loser_idx += 1

    return transfers


def calculate_settlement(entries: Sequence[PlayerEntry], *, strict: bool = False) -> list[Transfer]:
    """Minimal list of loser -> winner payments that zeroes every player's balance.

    Callers are expected to run :func:`validate_zero_sum` first. With
    ``strict=True`` an unbalanced input raises :class:`SettlementImbalanceError`
    instead of producing a partial settlement.
    """
    if strict:
        check = check_zero_sum(entries)
        if not check.ok:
            raise SettlementImbalanceError(check)

    player_ids = [entry.player_id for entry in entries]
    if len(set(player_ids)) != len(player_ids):
        raise DomainValidationError("players must be unique within a settlement")

    return build_transfers(entry.position for entry in entries)
