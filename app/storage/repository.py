from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased, sessionmaker

from app.domain import (
    DomainValidationError,
    PlayerEntry,
    PlayerResult,
    SessionStatus,
    Transfer,
    to_decimal,
    utcnow,
)
from app.storage.models import Entry, Player, PokerSession, Settlement


@dataclass(slots=True)
class PlayerRow:
    id: str
    name: str
    created_at: datetime


@dataclass(slots=True)
class SessionRow:
    id: str
    note: str | None
    status: SessionStatus
    created_at: datetime


@dataclass(slots=True)
class EntryRow:
    id: str
    session_id: str
    player_id: str
    player_name: str
    buy_in: Decimal
    cash_out: Decimal | None
    created_at: datetime

    def to_player_entry(self) -> PlayerEntry:
        return PlayerEntry(
            player_id=self.player_id,
            display_name=self.player_name,
            buy_in=self.buy_in,
            cash_out=self.cash_out,
        )


def _amount(value: float | None) -> Decimal | None:
    return None if value is None else to_decimal(value)


def _player_row(player: Player) -> PlayerRow:
    return PlayerRow(id=player.id, name=player.name, created_at=player.created_at)


def _session_row(session: PokerSession) -> SessionRow:
    return SessionRow(
        id=session.id,
        note=session.note,
        status=SessionStatus(session.status),
        created_at=session.created_at,
    )


class LedgerRepository:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    # players

    def create_player(self, name: str) -> PlayerRow:
        with self._session_factory() as db:
            player = Player(name=name)
            db.add(player)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DomainValidationError(f"player already exists: {name}") from exc
            return _player_row(player)

    def get_player(self, player_id: str) -> PlayerRow | None:
        with self._session_factory() as db:
            player = db.get(Player, player_id)
            return _player_row(player) if player is not None else None

    def find_player_by_name(self, name: str) -> PlayerRow | None:
        with self._session_factory() as db:
            player = db.scalars(select(Player).where(Player.name == name)).first()
            return _player_row(player) if player is not None else None

    def list_players(self) -> list[PlayerRow]:
        with self._session_factory() as db:
            return [_player_row(player) for player in db.scalars(select(Player).order_by(Player.name)).all()]

    def rename_player(self, player_id: str, name: str) -> PlayerRow:
        with self._session_factory() as db:
            player = db.get(Player, player_id)
            if player is None:
                raise ValueError("player not found")
            player.name = name
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DomainValidationError(f"player already exists: {name}") from exc
            return _player_row(player)

    def delete_player(self, player_id: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(Player).where(Player.id == player_id))
            db.commit()

    def count_player_entries(self, player_id: str) -> int:
        with self._session_factory() as db:
            row = db.execute(select(func.count(Entry.id)).where(Entry.player_id == player_id)).one()
            return int(row[0] or 0)

    # sessions

    def create_session(self, note: str | None, created_at: datetime | None = None) -> SessionRow:
        with self._session_factory() as db:
            session = PokerSession(
                note=note,
                status=SessionStatus.OPEN.value,
                created_at=created_at or utcnow(),
            )
            db.add(session)
            db.commit()
            return _session_row(session)

    def get_session(self, session_id: str) -> SessionRow | None:
        with self._session_factory() as db:
            session = db.get(PokerSession, session_id)
            return _session_row(session) if session is not None else None

    def list_sessions(self, limit: int = 20) -> list[SessionRow]:
        with self._session_factory() as db:
            rows = db.scalars(select(PokerSession).order_by(PokerSession.created_at.desc()).limit(limit)).all()
            return [_session_row(session) for session in rows]

    def delete_session(self, session_id: str) -> None:
        with self._session_factory() as db:
            session = db.get(PokerSession, session_id)
            if session is not None:
                db.delete(session)
                db.commit()

    # entries

    def add_entry(self, session_id: str, player_id: str, buy_in: Decimal) -> EntryRow:
        with self._session_factory() as db:
            last_position = db.execute(
                select(func.max(Entry.position)).where(Entry.session_id == session_id)
            ).scalar()
            entry = Entry(
                session_id=session_id,
                player_id=player_id,
                buy_in=float(buy_in),
                position=(last_position or 0) + 1,
            )
            db.add(entry)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DomainValidationError("player already joined the session") from exc
            entry_id = entry.id
        return self.get_entry(entry_id)

    def get_entry(self, entry_id: str) -> EntryRow | None:
        with self._session_factory() as db:
            row = db.execute(
                select(Entry, Player.name).join(Player, Player.id == Entry.player_id).where(Entry.id == entry_id)
            ).first()
            if row is None:
                return None
            return self._entry_row(row[0], row[1])

    def get_entries(self, session_id: str) -> list[EntryRow]:
        with self._session_factory() as db:
            rows = db.execute(
                select(Entry, Player.name)
                .join(Player, Player.id == Entry.player_id)
                .where(Entry.session_id == session_id)
                .order_by(Entry.position)
            ).all()
            return [self._entry_row(entry, name) for entry, name in rows]

    def update_buy_in(self, entry_id: str, buy_in: Decimal) -> None:
        with self._session_factory() as db:
            entry = db.get(Entry, entry_id)
            if entry is None:
                raise ValueError("entry not found")
            entry.buy_in = float(buy_in)
            db.commit()

    def update_cash_out(self, entry_id: str, cash_out: Decimal | None) -> None:
        with self._session_factory() as db:
            entry = db.get(Entry, entry_id)
            if entry is None:
                raise ValueError("entry not found")
            entry.cash_out = None if cash_out is None else float(cash_out)
            db.commit()

    def delete_entry(self, entry_id: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(Entry).where(Entry.id == entry_id))
            db.commit()

    # settlements

    def store_settlement(
        self,
        session_id: str,
        cash_outs: Mapping[str, Decimal],
        transfers: Sequence[Transfer],
    ) -> None:
        """Write final cash-outs, replace stored transfers and mark the session settled."""
        with self._session_factory() as db:
            session = db.get(PokerSession, session_id)
            if session is None:
                raise ValueError("session not found")

            for entry in db.scalars(select(Entry).where(Entry.session_id == session_id)).all():
                if entry.id in cash_outs:
                    entry.cash_out = float(cash_outs[entry.id])

            db.execute(delete(Settlement).where(Settlement.session_id == session_id))
            db.add_all(
                [
                    Settlement(
                        session_id=session_id,
                        from_player_id=transfer.from_player_id,
                        to_player_id=transfer.to_player_id,
                        amount=float(transfer.amount),
                        position=idx,
                    )
                    for idx, transfer in enumerate(transfers)
                ]
            )
            session.status = SessionStatus.SETTLED.value
            db.commit()

    def reopen_session(self, session_id: str) -> None:
        with self._session_factory() as db:
            session = db.get(PokerSession, session_id)
            if session is None:
                raise ValueError("session not found")
            db.execute(delete(Settlement).where(Settlement.session_id == session_id))
            session.status = SessionStatus.OPEN.value
            db.commit()

    def get_settlements(self, session_id: str) -> list[Transfer]:
        payer = aliased(Player)
        payee = aliased(Player)
        with self._session_factory() as db:
            rows = db.execute(
                select(Settlement, payer.name, payee.name)
                .join(payer, payer.id == Settlement.from_player_id)
                .join(payee, payee.id == Settlement.to_player_id)
                .where(Settlement.session_id == session_id)
                .order_by(Settlement.position)
            ).all()
            return [
                Transfer(
                    from_player_id=settlement.from_player_id,
                    from_name=from_name,
                    to_player_id=settlement.to_player_id,
                    to_name=to_name,
                    amount=to_decimal(settlement.amount),
                )
                for settlement, from_name, to_name in rows
            ]

    # stats

    def get_player_results(self, player_id: str | None = None) -> list[PlayerResult]:
        with self._session_factory() as db:
            query = (
                select(Entry.player_id, Player.name, Entry.session_id, PokerSession.created_at, Entry.buy_in, Entry.cash_out)
                .join(Player, Player.id == Entry.player_id)
                .join(PokerSession, PokerSession.id == Entry.session_id)
                .where(Entry.cash_out.is_not(None))
                .order_by(PokerSession.created_at, Entry.position)
            )
            if player_id is not None:
                query = query.where(Entry.player_id == player_id)

            return [
                PlayerResult(
                    player_id=row.player_id,
                    name=row.name,
                    session_id=row.session_id,
                    played_at=row.created_at,
                    net=to_decimal(row.cash_out) - to_decimal(row.buy_in),
                )
                for row in db.execute(query).all()
            ]

    @staticmethod
    def _entry_row(entry: Entry, player_name: str) -> EntryRow:
        return EntryRow(
            id=entry.id,
            session_id=entry.session_id,
            player_id=entry.player_id,
            player_name=player_name,
            buy_in=to_decimal(entry.buy_in),
            cash_out=_amount(entry.cash_out),
            created_at=entry.created_at,
        )
