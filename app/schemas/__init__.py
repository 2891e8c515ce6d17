"""
app/schemas package marker.
"""

from app.schemas.source_fetch import (
    ExecutionStepResponse,
    SourceDescriptorRequest,
    SourceFetchResult,
    SourceFetchRunRequest,
    SourceFetchRunResponse,
)

__all__ = [
    "ExecutionStepResponse",
    "SourceDescriptorRequest",
    "SourceFetchResult",
    "SourceFetchRunRequest",
    "SourceFetchRunResponse",
]
