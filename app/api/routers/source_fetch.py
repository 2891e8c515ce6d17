"""
app/api/routers/source_fetch.py

HTTP endpoint previewing a calculation run over a list of sources.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.domain.execution_ledger import ExecutionLedger
from app.schemas.source_fetch import (
    ExecutionStepResponse,
    SourceFetchResult,
    SourceFetchRunRequest,
    SourceFetchRunResponse,
)
from app.services.source_fetch_service import SourceFetchOrchestrator, get_source_fetch_service

router = APIRouter(prefix="/sources", tags=["source-fetch"])


@router.post("/fetch", response_model=SourceFetchRunResponse)
def fetch_sources(
    payload: SourceFetchRunRequest,
    fetch_service: SourceFetchOrchestrator = Depends(get_source_fetch_service),
) -> SourceFetchRunResponse:
    """
    Fetch every source in order into one shared ledger.

    Failures never turn into HTTP errors; they show up as `error` or
    `skipped` steps next to a null `data`.
    """

    ledger = ExecutionLedger()
    results: list[SourceFetchResult] = []
    for source in payload.sources:
        data = fetch_service.fetch_source_data(source.to_descriptor(), ledger)
        results.append(SourceFetchResult(name=source.name, type=source.type, data=data))

    return SourceFetchRunResponse(
        results=results,
        steps=[ExecutionStepResponse(**step) for step in ledger.to_list()],
    )
