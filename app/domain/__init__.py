from .formatting import format_settlement_text
from .ledger import (
    CENT,
    DomainValidationError,
    NotFoundError,
    PlayerEntry,
    PlayerPosition,
    SessionStateError,
    SessionStatus,
    Transfer,
    ZERO,
    format_amount,
    normalize_name,
    round_amount,
    to_decimal,
)
from .settlement import (
    SettlementImbalanceError,
    ZeroSumCheck,
    build_transfers,
    calculate_settlement,
    check_zero_sum,
    validate_zero_sum,
)
from .stats import (
    PlayerResult,
    PlayerStats,
    PlayerSummary,
    build_leaderboard,
    summarize_player,
    utcnow,
)

__all__ = [
    "CENT",
    "DomainValidationError",
    "NotFoundError",
    "PlayerEntry",
    "PlayerPosition",
    "PlayerResult",
    "PlayerStats",
    "PlayerSummary",
    "SessionStateError",
    "SessionStatus",
    "SettlementImbalanceError",
    "Transfer",
    "ZERO",
    "ZeroSumCheck",
    "build_leaderboard",
    "build_transfers",
    "calculate_settlement",
    "check_zero_sum",
    "format_amount",
    "format_settlement_text",
    "normalize_name",
    "round_amount",
    "summarize_player",
    "to_decimal",
    "utcnow",
    "validate_zero_sum",
]
