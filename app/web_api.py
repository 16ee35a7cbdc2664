"""FastAPI application exposing the lookup service to a web/map front-end."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query
from pydantic import BaseModel

from app.config import get_lookup_log_path
from app.main import build_service, initial_state
from core.lookup_logger import read_lookup_log
from core.lookup_service import LookupOutcome, LookupService
from core.lookup_state import LookupStore

logger = logging.getLogger(__name__)


class LookupRequest(BaseModel):
    query: str


def _format_outcome(outcome: LookupOutcome) -> Dict[str, Any]:
    """Reshape a ``LookupOutcome`` into the response schema of ``/api/lookup``."""
    return {
        "updated": outcome.updated,
        "error": outcome.error_dict(),
        "state": outcome.state.to_dict(),
    }


def create_app(
    service: Optional[LookupService] = None,
    *,
    store: Optional[LookupStore] = None,
    lookup_log_path: Optional[Path] = None,
) -> FastAPI:
    """Build the FastAPI app; tests inject a stub service, store and log path."""

    app = FastAPI(title="MaxTemp Lookup API", version="0.1.0")
    app.state.service = service or build_service()
    app.state.store = store or LookupStore(initial_state())
    app.state.lookup_log_path = lookup_log_path or get_lookup_log_path()

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/state")
    def current_state() -> Dict[str, Any]:
        return app.state.store.snapshot().to_dict()

    @app.post("/api/lookup")
    def lookup(payload: LookupRequest) -> Dict[str, Any]:
        """Geocode ``payload.query`` and fetch its reading.

        Lookup failures keep the previous state and are reported with
        ``updated: false`` and an ``error`` object rather than an HTTP error.
        """
        outcome = app.state.service.submit(app.state.store, payload.query)
        if outcome.error is not None:
            logger.info("Lookup request for %r left state unchanged", payload.query)
        return _format_outcome(outcome)

    @app.get("/api/lookups")
    def recent_lookups(limit: int = Query(20, ge=1, le=500)) -> Dict[str, Any]:
        rows = read_lookup_log(app.state.lookup_log_path, limit=limit)
        return {"lookups": rows, "count": len(rows)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from app.config import get_web_ui_host, get_web_ui_port
    from app.main import configure_logging

    configure_logging()
    uvicorn.run(
        "app.web_api:app",
        host=get_web_ui_host(),
        port=get_web_ui_port(),
        reload=False,
    )
