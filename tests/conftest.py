import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.service import LedgerService
from app.storage.database import enable_sqlite_foreign_keys, init_db
from app.storage.repository import LedgerRepository


def build_service(engine) -> LedgerService:
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    return LedgerService(LedgerRepository(TestingSessionLocal))


@pytest.fixture
def service() -> LedgerService:
    """Ledger service backed by a throwaway in-memory SQLite database."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return build_service(engine)


@pytest.fixture
def threaded_service(tmp_path) -> LedgerService:
    """File-backed SQLite so concurrent callers get their own connections."""
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield build_service(engine)
    engine.dispose()
