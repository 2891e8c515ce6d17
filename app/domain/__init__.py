"""
app/domain package marker.
"""

from app.domain.execution_ledger import ExecutionLedger, ExecutionStep, LedgerStateError, StepStatus
from app.domain.source_config import (
    DatabaseQueryConfig,
    HttpAuthConfig,
    LiteralDataConfig,
    MailboxConfig,
    MailProvider,
    SourceDescriptor,
    SourceType,
)
from app.domain.source_payload import PayloadKind, SourcePayload

__all__ = [
    "DatabaseQueryConfig",
    "ExecutionLedger",
    "ExecutionStep",
    "HttpAuthConfig",
    "LedgerStateError",
    "LiteralDataConfig",
    "MailboxConfig",
    "MailProvider",
    "PayloadKind",
    "SourceDescriptor",
    "SourcePayload",
    "SourceType",
    "StepStatus",
]
