from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.players import router as players_router
from app.api.sessions import router as sessions_router
from app.api.settlements import router as settlements_router
from app.api.stats import router as stats_router
from app.storage.database import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pokerledger.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Poker ledger started")
    yield


app = FastAPI(title="Poker Ledger API", lifespan=lifespan)
app.include_router(players_router)
app.include_router(sessions_router)
app.include_router(settlements_router)
app.include_router(stats_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
