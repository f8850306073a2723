"""Application lifespan — seed the ledger clock, release Redis on shutdown.

Usage:
    app = FastAPI(lifespan=lifespan, ...)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from trackchain.database import async_session
from trackchain.utils.cache import close_redis
from trackchain.utils.clock import ledger_clock

logger = logging.getLogger("trackchain.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with async_session() as db:
        latest = await ledger_clock.seed(db)
    logger.info("Ledger clock seeded at %d", latest)

    yield

    await close_redis()
    logger.info("Shut down cleanly")
