"""
app/domain/execution_ledger.py

Append-only execution ledger recording each source fetch attempt.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({StepStatus.SUCCESS, StepStatus.ERROR, StepStatus.SKIPPED})
_OPEN_STATUSES = frozenset({StepStatus.PENDING, StepStatus.RUNNING})


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LedgerStateError(RuntimeError):
    """
    Raised when a ledger operation would break the step lifecycle.
    """


@dataclass
class ExecutionStep:
    """
    One diagnostic entry of a calculation run.
    """

    step: int
    action: str
    status: StepStatus
    message: str
    details: dict[str, Any] | None = None
    timestamp: str = field(default_factory=_utc_now_iso)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload


class ExecutionLedger:
    """
    Shared, mutable audit log passed by reference through a calculation run.

    Steps are only ever appended and finalized in place. The ledger is not
    safe for concurrent use by simultaneous fetches.
    """

    def __init__(self, steps: list[ExecutionStep] | None = None) -> None:
        self._steps: list[ExecutionStep] = list(steps or [])

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[ExecutionStep]:
        return iter(self._steps)

    def __getitem__(self, index: int) -> ExecutionStep:
        return self._steps[index]

    @property
    def last(self) -> ExecutionStep | None:
        return self._steps[-1] if self._steps else None

    @property
    def next_step_number(self) -> int:
        return len(self._steps) + 1

    def push(self, step: ExecutionStep) -> int:
        """
        Append an open step and return its position in the ledger.
        """

        if step.status not in _OPEN_STATUSES:
            raise LedgerStateError(
                f"Only pending or running steps can be pushed, got '{step.status.value}'."
            )
        self._steps.append(step)
        return len(self._steps) - 1

    def open_step(
        self,
        *,
        action: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> int:
        return self.push(
            ExecutionStep(
                step=self.next_step_number,
                action=action,
                status=StepStatus.RUNNING,
                message=message,
                details=dict(details) if details else None,
            )
        )

    def is_finalized(self, index: int) -> bool:
        return self._steps[index].is_terminal

    def finalize(
        self,
        index: int,
        status: StepStatus,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> ExecutionStep:
        """
        Move the step at `index` to a terminal status, merging `details`.
        """

        status = StepStatus(status)
        if not status.is_terminal:
            raise LedgerStateError(f"'{status.value}' is not a terminal step status.")

        step = self._steps[index]
        if step.is_terminal:
            raise LedgerStateError(
                f"Step {step.step} is already finalized as '{step.status.value}'."
            )

        step.status = status
        step.message = message
        if details:
            step.details = {**(step.details or {}), **details}
        step.timestamp = _utc_now_iso()
        return step

    def to_list(self) -> list[dict[str, Any]]:
        return [step.to_dict() for step in self._steps]
