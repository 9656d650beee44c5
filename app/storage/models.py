from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain import utcnow
from app.storage.database import Base


def _new_id() -> str:
    return str(uuid4())


class Player(Base):
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    entries: Mapped[list["Entry"]] = relationship(back_populates="player")


class PokerSession(Base):
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    note: Mapped[str | None] = mapped_column(String(256), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="open", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    entries: Mapped[list["Entry"]] = relationship(back_populates="session", cascade="all, delete-orphan")
    settlements: Mapped[list["Settlement"]] = relationship(back_populates="session", cascade="all, delete-orphan")


class Entry(Base):
    __tablename__ = "entries"
    __table_args__ = (UniqueConstraint("session_id", "player_id", name="uq_entries_session_player"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    session_id: Mapped[str] = mapped_column(ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False, index=True)
    buy_in: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    cash_out: Mapped[float | None] = mapped_column(Float, nullable=True)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    session: Mapped[PokerSession] = relationship(back_populates="entries")
    player: Mapped[Player] = relationship(back_populates="entries")


class Settlement(Base):
    __tablename__ = "settlements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    session_id: Mapped[str] = mapped_column(ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    from_player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    to_player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    session: Mapped[PokerSession] = relationship(back_populates="settlements")
