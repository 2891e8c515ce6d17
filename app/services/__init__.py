"""
app/services package marker.

Only leaf helpers are re-exported here; connectors import them, so the
orchestrator is imported from `app.services.source_fetch_service` directly.
"""

from app.services.field_extractor import extract_fields
from app.services.value_heuristics import VALUE_HEURISTICS, resolve_text_value

__all__ = [
    "VALUE_HEURISTICS",
    "extract_fields",
    "resolve_text_value",
]
