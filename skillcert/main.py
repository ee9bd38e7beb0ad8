from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from skillcert.api.credentials import holders_router
from skillcert.api.credentials import router as credentials_router
from skillcert.api.errors import install_error_handlers
from skillcert.api.health import router as health_router
from skillcert.api.issuers import router as issuers_router
from skillcert.api.metrics_endpoint import router as metrics_router
from skillcert.core.config import SETTINGS
from skillcert.core.logging import setup_logging
from skillcert.db.engine import lifespan_db
from skillcert.db.redis import lifespan_redis
from skillcert.middleware.metrics import MetricsMiddleware
from skillcert.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one fails.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="skillcert",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

install_error_handlers(app)

# Last added runs first: RequestContext (outermost) → Metrics → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(issuers_router)
app.include_router(credentials_router)
app.include_router(holders_router)

logger.info(
    "skillcert started  env=%s log_level=%s port=%d admin=%s storage=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.admin_principal,
    "postgres" if SETTINGS.database_url else "memory",
)
