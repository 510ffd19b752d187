"""Unit tests for batch processor functionality."""

import threading
from unittest.mock import MagicMock

import pytest

from resource_reaper.cleanup.batch_processor import BatchProcessor, BatchResult
from resource_reaper.context import OperationContext
from resource_reaper.errors import DeleteResourceError, OperationCancelled


class TestBatchResult:
    """Tests for BatchResult dataclass."""

    def test_batch_result_defaults(self):
        result = BatchResult()

        assert result.successful == []
        assert result.failed == []
        assert result.errors == {}

    def test_merge(self):
        error = DeleteResourceError("denied")
        result = BatchResult(successful=["r-001"])

        result.merge(BatchResult(successful=["r-002"], failed=["r-003"], errors={"r-003": error}))

        assert result.successful == ["r-001", "r-002"]
        assert result.failed == ["r-003"]
        assert result.errors["r-003"] is error


class TestBatchProcessor:
    """Tests for BatchProcessor class."""

    def test_init_default_batch_size(self):
        assert BatchProcessor().batch_size == 1

    def test_init_minimum_batch_size(self):
        """Test batch size is at least 1."""
        assert BatchProcessor(batch_size=0).batch_size == 1
        assert BatchProcessor(batch_size=-5).batch_size == 1

    def test_process_deletions_empty_list(self):
        processor = BatchProcessor()
        delete_func = MagicMock()

        result = processor.process_deletions([], delete_func)

        assert result.successful == []
        delete_func.assert_not_called()

    def test_process_deletions_sequential_success(self):
        processor = BatchProcessor(batch_size=1)
        delete_func = MagicMock(return_value=None)

        result = processor.process_deletions(["r-001", "r-002", "r-003"], delete_func)

        assert result.successful == ["r-001", "r-002", "r-003"]
        assert delete_func.call_count == 3

    def test_process_deletions_sequential_exception(self):
        """A failed item is recorded and later items still run."""
        processor = BatchProcessor(batch_size=1)
        delete_func = MagicMock(side_effect=[None, DeleteResourceError("API error"), None])

        result = processor.process_deletions(["r-001", "r-002", "r-003"], delete_func)

        assert result.successful == ["r-001", "r-003"]
        assert result.failed == ["r-002"]
        assert "API error" in str(result.errors["r-002"])

    def test_process_deletions_concurrent_mixed(self):
        processor = BatchProcessor(batch_size=3)

        def delete_func(resource_id):
            if resource_id == "r-002":
                raise DeleteResourceError("denied")

        result = processor.process_deletions(["r-001", "r-002", "r-003"], delete_func)

        assert sorted(result.successful) == ["r-001", "r-003"]
        assert result.failed == ["r-002"]

    def test_key_function_used_for_errors(self):
        processor = BatchProcessor()
        items = [{"name": "vm-1"}]

        result = processor.process_deletions(
            items, MagicMock(side_effect=RuntimeError("x")), key=lambda item: item["name"]
        )

        assert list(result.errors) == ["vm-1"]

    def test_batches_complete_in_order(self):
        """Each batch finishes before the next one starts."""
        processor = BatchProcessor(batch_size=2)
        seen = []
        lock = threading.Lock()

        def delete_func(item):
            with lock:
                seen.append(item)

        processor.process_deletions([1, 2, 3, 4, 5], delete_func)

        assert sorted(seen[:2]) == [1, 2]
        assert sorted(seen[2:4]) == [3, 4]
        assert seen[4] == 5

    def test_cancelled_context_stops_before_next_batch(self):
        processor = BatchProcessor(batch_size=1)
        ctx = OperationContext()
        calls = []

        def delete_func(item):
            calls.append(item)
            ctx.cancel()

        with pytest.raises(OperationCancelled):
            processor.process_deletions(["r-001", "r-002"], delete_func, ctx=ctx)

        assert calls == ["r-001"]

    def test_cancellation_inside_concurrent_batch_propagates(self):
        processor = BatchProcessor(batch_size=2)

        def delete_func(item):
            if item == "r-002":
                raise OperationCancelled("Operation was cancelled")

        with pytest.raises(OperationCancelled):
            processor.process_deletions(["r-001", "r-002"], delete_func)

    def test_cancellation_inside_sequential_batch_propagates(self):
        processor = BatchProcessor(batch_size=1)

        with pytest.raises(OperationCancelled):
            processor.process_deletions(
                ["r-001"], MagicMock(side_effect=OperationCancelled("Operation deadline exceeded"))
            )
