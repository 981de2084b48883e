"""FastAPI application: health check and the visitor analytics endpoints."""

import json
import logging
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from oncosaferx import __version__
from oncosaferx.config import get_settings
from oncosaferx.constants import DEFAULT_METRICS_RANGE
from oncosaferx.models.analytics import AnalyticsEvent
from oncosaferx.services.analytics import AnalyticsStore
from oncosaferx.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@lru_cache
def get_analytics_store() -> AnalyticsStore:
    """Process-wide analytics store."""
    return AnalyticsStore(salt=get_settings().analytics_salt)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log_level)
    logger.info("OncoSafeRx API %s starting", __version__)
    yield


app = FastAPI(
    title="OncoSafeRx API",
    description="Clinical oncology decision support: analytics ingestion and metrics",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.post("/api/analytics")
async def track_event(request: Request, store: AnalyticsStore = Depends(get_analytics_store)):
    """Validate and store one analytics event."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(status_code=400, content={"errors": [{"msg": "Invalid JSON body"}]})

    client_ip = request.client.host if request.client else ""
    try:
        event = AnalyticsEvent.model_validate(body)
        store.handle(event, client_ip)
    except ValidationError as e:
        # envelope or payload
        return JSONResponse(
            status_code=400,
            content={"errors": jsonable_encoder(e.errors(include_url=False, include_context=False))},
        )
    except Exception:
        logger.exception("Analytics error")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return {"success": True}


@app.get("/api/analytics/metrics")
async def analytics_metrics(
    range_: str = Query(DEFAULT_METRICS_RANGE, alias="range"),
    store: AnalyticsStore = Depends(get_analytics_store),
):
    try:
        metrics = store.get_metrics(range_)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception:
        logger.exception("Metrics error")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    return metrics.model_dump(mode="json", by_alias=True)
