"""Deletion batching."""

from resource_reaper.cleanup.batch_processor import BatchProcessor, BatchResult

__all__ = ["BatchProcessor", "BatchResult"]
