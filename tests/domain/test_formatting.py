from decimal import Decimal

import pytest

from app.domain import Transfer, format_amount, format_settlement_text


def make_transfer(payer: str, payee: str, amount: str) -> Transfer:
    return Transfer(
        from_player_id=payer.lower(),
        from_name=payer,
        to_player_id=payee.lower(),
        to_name=payee,
        amount=Decimal(amount),
    )


def test_transfer_lines_follow_header_and_separator() -> None:
    text = format_settlement_text([make_transfer("B", "A", "200.00"), make_transfer("C", "A", "66.50")])

    assert text.splitlines() == ["🃏 结算单", "─" * 20, "B → A：200", "C → A：66.5"]


def test_note_goes_into_header() -> None:
    text = format_settlement_text([make_transfer("B", "A", "100")], "周五晚老王家")

    assert text.splitlines()[0] == "🃏 周五晚老王家 结算单"


@pytest.mark.parametrize("note", [None, ""])
def test_empty_settlement_keeps_header(note: str | None) -> None:
    assert format_settlement_text([], note) == "🃏 结算单\n" + "─" * 20


@pytest.mark.parametrize(
    "value, expected",
    [
        ("200.00", "200"),
        ("66.50", "66.5"),
        ("66.67", "66.67"),
        ("-100.0", "-100"),
        ("0.00", "0"),
        ("1E+2", "100"),
    ],
)
def test_format_amount(value: str, expected: str) -> None:
    assert format_amount(Decimal(value)) == expected
