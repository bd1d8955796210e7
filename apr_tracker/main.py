from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from apr_tracker.api.deps import get_snapshot_scheduler
from apr_tracker.api.routers.collection import router as collection_router
from apr_tracker.api.routers.pools import router as pools_router
from apr_tracker.domain.exceptions import StoreUnavailableError
from apr_tracker.infrastructure.db.engine import ensure_schema, get_engine
from apr_tracker.shared.config import get_settings


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    scheduler = None
    if not settings.scheduler_enabled:
        logger.info("app: scheduler_disabled")
    elif not settings.postgres_dsn:
        logger.warning("app: scheduler_not_started reason=missing_postgres_dsn")
    else:
        try:
            ensure_schema(get_engine(settings.postgres_dsn))
            scheduler = get_snapshot_scheduler()
            scheduler.bootstrap()
        except (StoreUnavailableError, HTTPException) as exc:
            logger.error("app: scheduler_bootstrap_failed error=%s", exc)

    yield

    if scheduler is not None:
        scheduler.stop()


app = FastAPI(title="Pool APR Tracker API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pools_router)
app.include_router(collection_router)
