from __future__ import annotations

import unittest

from app.domain.execution_ledger import ExecutionLedger, ExecutionStep, LedgerStateError, StepStatus


class TestExecutionLedger(unittest.TestCase):
    def setUp(self) -> None:
        self.ledger = ExecutionLedger()

    def test_open_step_numbers_steps_from_one(self) -> None:
        first = self.ledger.open_step(action="fetch_source", message="a")
        second = self.ledger.open_step(action="fetch_source", message="b")

        self.assertEqual((first, second), (0, 1))
        self.assertEqual([step.step for step in self.ledger], [1, 2])
        self.assertEqual(self.ledger[1].status, StepStatus.RUNNING)

    def test_push_rejects_terminal_steps(self) -> None:
        with self.assertRaises(LedgerStateError):
            self.ledger.push(
                ExecutionStep(step=1, action="fetch_source", status=StepStatus.SUCCESS, message="done")
            )

    def test_push_accepts_pending_steps(self) -> None:
        index = self.ledger.push(
            ExecutionStep(step=1, action="fetch_source", status=StepStatus.PENDING, message="queued")
        )
        self.assertEqual(index, 0)
        self.assertFalse(self.ledger.is_finalized(index))

    def test_finalize_merges_details_and_refreshes_timestamp(self) -> None:
        index = self.ledger.open_step(action="fetch_source", message="a", details={"type": "api"})
        self.ledger[index].timestamp = "1970-01-01T00:00:00+00:00"

        step = self.ledger.finalize(index, StepStatus.SUCCESS, "ok", details={"record_count": 3})

        self.assertEqual(step.details, {"type": "api", "record_count": 3})
        self.assertNotEqual(step.timestamp, "1970-01-01T00:00:00+00:00")
        self.assertTrue(self.ledger.is_finalized(index))

    def test_finalize_twice_is_rejected(self) -> None:
        index = self.ledger.open_step(action="fetch_source", message="a")
        self.ledger.finalize(index, StepStatus.ERROR, "boom")

        with self.assertRaises(LedgerStateError):
            self.ledger.finalize(index, StepStatus.SUCCESS, "ok")
        self.assertEqual(self.ledger[index].status, StepStatus.ERROR)

    def test_finalize_requires_terminal_status(self) -> None:
        index = self.ledger.open_step(action="fetch_source", message="a")
        with self.assertRaises(LedgerStateError):
            self.ledger.finalize(index, StepStatus.RUNNING, "still going")

    def test_to_list_serializes_status_values(self) -> None:
        index = self.ledger.open_step(action="fetch_source", message="a")
        self.ledger.finalize(index, StepStatus.SKIPPED, "skip")

        (payload,) = self.ledger.to_list()
        self.assertEqual(payload["status"], "skipped")
        self.assertEqual(payload["step"], 1)
        self.assertEqual(self.ledger.last.message, "skip")


if __name__ == "__main__":
    unittest.main()
