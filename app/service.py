from __future__ import annotations

import logging
import os
import threading
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

from app.domain import (
    DomainValidationError,
    NotFoundError,
    PlayerStats,
    PlayerSummary,
    SessionStateError,
    SessionStatus,
    SettlementImbalanceError,
    Transfer,
    ZERO,
    build_leaderboard,
    calculate_settlement,
    check_zero_sum,
    format_settlement_text,
    normalize_name,
    summarize_player,
    to_decimal,
)
from app.storage.repository import EntryRow, LedgerRepository, PlayerRow, SessionRow

logger = logging.getLogger("pokerledger.service")

DEFAULT_BUY_IN = to_decimal(os.getenv("DEFAULT_BUY_IN", "400"))


def _non_negative(value: Decimal | int | float | str, field: str) -> Decimal:
    amount = to_decimal(value)
    if amount < 0:
        raise DomainValidationError(f"{field} must not be negative")
    return amount


class LedgerService:
    def __init__(self, repo: LedgerRepository) -> None:
        self.repo = repo
        self._settle_locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    # players

    def add_player(self, name: str) -> PlayerRow:
        normalized = normalize_name(name)
        if self.repo.find_player_by_name(normalized) is not None:
            raise DomainValidationError(f"player already exists: {normalized}")
        return self.repo.create_player(normalized)

    def rename_player(self, player_id: str, name: str) -> PlayerRow:
        self._player_or_raise(player_id)
        normalized = normalize_name(name)
        existing = self.repo.find_player_by_name(normalized)
        if existing is not None and existing.id != player_id:
            raise DomainValidationError(f"player already exists: {normalized}")
        return self.repo.rename_player(player_id, normalized)

    def remove_player(self, player_id: str) -> None:
        player = self._player_or_raise(player_id)
        if self.repo.count_player_entries(player_id):
            raise DomainValidationError(f"player {player.name} has session entries")
        self.repo.delete_player(player_id)
        logger.info("Removed player %s", player_id)

    def list_players(self) -> list[PlayerRow]:
        return self.repo.list_players()

    # sessions

    def open_session(self, note: str | None = None, played_at: datetime | None = None) -> SessionRow:
        """Open a session, stamped with `played_at` (stored as naive UTC) or now."""
        note = note.strip() if note else None
        if played_at is not None and played_at.tzinfo is not None:
            played_at = played_at.astimezone(timezone.utc).replace(tzinfo=None)
        session = self.repo.create_session(note or None, created_at=played_at)
        logger.info("Opened session %s", session.id)
        return session

    def list_sessions(self, limit: int = 20) -> list[SessionRow]:
        return self.repo.list_sessions(limit=limit)

    def get_session(self, session_id: str) -> dict[str, object]:
        session = self._session_or_raise(session_id)
        entries = self.repo.get_entries(session_id)
        check = check_zero_sum(entry.to_player_entry() for entry in entries)
        return {
            "session": session,
            "entries": entries,
            "transfers": self.repo.get_settlements(session_id),
            "total_buy_in": check.total_buy_in,
            "total_cash_out": check.total_cash_out,
        }

    def delete_session(self, session_id: str) -> None:
        self._session_or_raise(session_id)
        self.repo.delete_session(session_id)
        with self._locks_guard:
            self._settle_locks.pop(session_id, None)
        logger.info("Deleted session %s", session_id)

    # entries

    def add_entry(self, session_id: str, player_id: str, buy_in: Decimal | float | None = None) -> EntryRow:
        self._open_session_or_raise(session_id)
        player = self._player_or_raise(player_id)
        if any(entry.player_id == player_id for entry in self.repo.get_entries(session_id)):
            raise DomainValidationError(f"player {player.name} already joined the session")
        amount = DEFAULT_BUY_IN if buy_in is None else _non_negative(buy_in, "buy_in")
        return self.repo.add_entry(session_id, player_id, amount)

    def update_buy_in(self, session_id: str, entry_id: str, buy_in: Decimal | float) -> EntryRow:
        self._open_session_or_raise(session_id)
        self._entry_or_raise(session_id, entry_id)
        self.repo.update_buy_in(entry_id, _non_negative(buy_in, "buy_in"))
        return self._entry_or_raise(session_id, entry_id)

    def record_cash_out(
        self,
        session_id: str,
        entry_id: str,
        remaining: Decimal | float,
        early: Decimal | float = 0,
    ) -> EntryRow:
        """Chips left at the table plus anything cashed out early."""
        self._open_session_or_raise(session_id)
        self._entry_or_raise(session_id, entry_id)
        cash_out = _non_negative(remaining, "remaining") + _non_negative(early, "early")
        self.repo.update_cash_out(entry_id, cash_out)
        return self._entry_or_raise(session_id, entry_id)

    def clear_cash_out(self, session_id: str, entry_id: str) -> EntryRow:
        self._open_session_or_raise(session_id)
        self._entry_or_raise(session_id, entry_id)
        self.repo.update_cash_out(entry_id, None)
        return self._entry_or_raise(session_id, entry_id)

    def remove_entry(self, session_id: str, entry_id: str) -> None:
        self._open_session_or_raise(session_id)
        self._entry_or_raise(session_id, entry_id)
        self.repo.delete_entry(entry_id)

    # settlement

    def settle_session(self, session_id: str) -> dict[str, object]:
        with self._settle_lock(session_id):
            session = self._open_session_or_raise(session_id)
            entries = self.repo.get_entries(session_id)

            missing = [entry.player_name for entry in entries if entry.cash_out is None]
            if missing:
                raise DomainValidationError(f"cash-out missing for: {', '.join(missing)}")

            player_entries = [entry.to_player_entry() for entry in entries]
            check = check_zero_sum(player_entries)
            if not check.ok:
                logger.warning(
                    "Rejected settlement for session %s: buy-in %s, cash-out %s",
                    session_id,
                    check.total_buy_in,
                    check.total_cash_out,
                )
                raise SettlementImbalanceError(check)

            transfers = calculate_settlement(player_entries)
            cash_outs = {entry.id: entry.cash_out or ZERO for entry in entries}
            self.repo.store_settlement(session_id, cash_outs, transfers)
            logger.info("Settled session %s with %d transfers", session_id, len(transfers))

        return {
            "session_id": session_id,
            "transfers": transfers,
            "text": format_settlement_text(transfers, session.note),
        }

    def reopen_session(self, session_id: str) -> SessionRow:
        with self._settle_lock(session_id):
            session = self._session_or_raise(session_id)
            if session.status is not SessionStatus.SETTLED:
                raise SessionStateError("session is not settled")
            self.repo.reopen_session(session_id)
            logger.info("Reopened session %s", session_id)
        return self._session_or_raise(session_id)

    def get_settlement(self, session_id: str) -> list[Transfer]:
        self._session_or_raise(session_id)
        return self.repo.get_settlements(session_id)

    def settlement_text(self, session_id: str) -> str:
        session = self._session_or_raise(session_id)
        if session.status is not SessionStatus.SETTLED:
            raise SessionStateError("session is not settled")
        return format_settlement_text(self.repo.get_settlements(session_id), session.note)

    # stats

    def leaderboard(self, sort_by: str = "total_profit") -> list[PlayerStats]:
        return build_leaderboard(self.repo.get_player_results(), sort_by=sort_by)

    def player_stats(self, player_id: str, period: str = "all") -> PlayerSummary:
        player = self._player_or_raise(player_id)
        return summarize_player(
            self.repo.get_player_results(player_id),
            player_id=player.id,
            name=player.name,
            period=period,
        )

    # helpers

    def _settle_lock(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._settle_locks[session_id]

    def _player_or_raise(self, player_id: str) -> PlayerRow:
        player = self.repo.get_player(player_id)
        if player is None:
            raise NotFoundError(f"player not found: {player_id}")
        return player

    def _session_or_raise(self, session_id: str) -> SessionRow:
        session = self.repo.get_session(session_id)
        if session is None:
            raise NotFoundError(f"session not found: {session_id}")
        return session

    def _open_session_or_raise(self, session_id: str) -> SessionRow:
        session = self._session_or_raise(session_id)
        if session.status is not SessionStatus.OPEN:
            raise SessionStateError("session is already settled")
        return session

    def _entry_or_raise(self, session_id: str, entry_id: str) -> EntryRow:
        entry = self.repo.get_entry(entry_id)
        if entry is None or entry.session_id != session_id:
            raise NotFoundError(f"entry not found: {entry_id}")
        return entry
