from __future__ import annotations

from app.service import LedgerService
from app.storage.database import SessionLocal
from app.storage.repository import LedgerRepository

repo = LedgerRepository(SessionLocal)
service = LedgerService(repo)


def get_service() -> LedgerService:
    return service
