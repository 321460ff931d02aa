"""Prometheus scrape endpoint.

Exposes the HTTP metrics plus the grading ones (outcomes, late
penalties, attempt-limit hits, gradebook pushes, queue depth, backend
latency) in text exposition format.  The API and the worker are
separate processes with separate registries; each must be scraped.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
