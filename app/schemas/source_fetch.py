"""
app/schemas/source_fetch.py

Request and response schemas for source fetch runs.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.domain.source_config import SourceDescriptor


class SourceDescriptorRequest(BaseModel):
    """
    One source as stored in a cockpit document.
    """

    type: str | None = None
    name: str | None = None
    location: str | None = None
    connection: str | None = None
    fields: str | None = None
    config: dict[str, Any] | None = None

    def to_descriptor(self) -> SourceDescriptor:
        return SourceDescriptor.from_mapping(self.model_dump())


class SourceFetchRunRequest(BaseModel):
    sources: list[SourceDescriptorRequest] = Field(..., min_length=1, max_length=50)


class SourceFetchResult(BaseModel):
    name: str | None = None
    type: str | None = None
    data: Any = None


class ExecutionStepResponse(BaseModel):
    step: int = Field(..., ge=1)
    action: str
    status: str
    message: str
    details: dict[str, Any] | None = None
    timestamp: str


class SourceFetchRunResponse(BaseModel):
    results: list[SourceFetchResult] = Field(default_factory=list)
    steps: list[ExecutionStepResponse] = Field(default_factory=list)
