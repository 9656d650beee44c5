from __future__ import annotations

from collections.abc import Iterable

from .ledger import Transfer, format_amount

SEPARATOR = "─" * 20


def format_settlement_text(transfers: Iterable[Transfer], note: str | None = None) -> str:
    """Plain-text settlement summary, ready to paste into the group chat."""
    header = f"🃏 {note} 结算单" if note else "🃏 结算单"
    lines = [f"{t.from_name} → {t.to_name}：{format_amount(t.amount)}" for t in transfers]
    return "\n".join([header, SEPARATOR, *lines])
