"""Batch processor for concurrent resource deletions.

Deletions run in batches of a configurable size. Items within a batch run
concurrently on a ThreadPoolExecutor, and each batch completes before the
next one starts. Failures are recorded and processing continues.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from resource_reaper.context import OperationContext
from resource_reaper.errors import OperationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BatchResult(Generic[T]):
    """Result of batch processing operations.

    Attributes:
        successful: Items whose delete function returned normally
        failed: Items whose delete function raised
        errors: Maps item key to the exception it raised
    """

    successful: List[T] = field(default_factory=list)
    failed: List[T] = field(default_factory=list)
    errors: Dict[str, Exception] = field(default_factory=dict)

    def merge(self, other: "BatchResult[T]") -> None:
        self.successful.extend(other.successful)
        self.failed.extend(other.failed)
        self.errors.update(other.errors)


class BatchProcessor:
    """Process deletions in configurable batches."""

    def __init__(self, batch_size: int = 1):
        """Initialize batch processor.

        Args:
            batch_size: Number of items to process concurrently in each batch.
                       Defaults to 1 (sequential deletion).
        """
        self.batch_size = max(1, batch_size)
        logger.debug(f"BatchProcessor initialized with batch_size={self.batch_size}")

    def process_deletions(
        self,
        items: Sequence[T],
        delete_func: Callable[[T], None],
        key: Callable[[T], str] = str,
        ctx: Optional[OperationContext] = None,
    ) -> BatchResult[T]:
        """Process deletions in batches.

        Args:
            items: Items to delete
            delete_func: Deletes a single item, raising on failure
            key: Human-readable identifier of an item for logs and errors
            ctx: Operation context checked before each batch

        Returns:
            BatchResult containing successful, failed, and error details

        Raises:
            OperationCancelled: If the context is cancelled, before or
                during any batch
        """
        result: BatchResult[T] = BatchResult()

        if not items:
            logger.debug("No items to process")
            return result

        logger.info(f"Processing {len(items)} deletion(s) in batches of {self.batch_size}")

        for batch_num, i in enumerate(range(0, len(items), self.batch_size), start=1):
            if ctx is not None:
                ctx.check()

            batch = list(items[i : i + self.batch_size])
            if len(batch) > 1:
                batch_result = self._process_batch_concurrent(batch, delete_func, key)
            else:
                batch_result = self._process_batch_sequential(batch, delete_func, key)
            result.merge(batch_result)

            logger.debug(
                f"Batch {batch_num} complete: {len(batch_result.successful)} succeeded, "
                f"{len(batch_result.failed)} failed"
            )

        logger.info(
            f"Batch processing complete: {len(result.successful)} deleted, "
            f"{len(result.failed)} failed"
        )
        return result

    def _process_batch_concurrent(
        self,
        batch: List[T],
        delete_func: Callable[[T], None],
        key: Callable[[T], str],
    ) -> BatchResult[T]:
        result: BatchResult[T] = BatchResult()
        cancelled: Optional[OperationCancelled] = None

        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            future_to_item = {executor.submit(delete_func, item): item for item in batch}

            # Wait for every task so none outlives the batch
            for future in as_completed(future_to_item):
                item = future_to_item[future]
                try:
                    future.result()
                except OperationCancelled as e:
                    cancelled = e
                except Exception as e:
                    self._record_failure(result, item, key, e)
                else:
                    result.successful.append(item)
                    logger.debug(f"Successfully deleted {key(item)}")

        if cancelled is not None:
            raise cancelled
        return result

    def _process_batch_sequential(
        self,
        batch: List[T],
        delete_func: Callable[[T], None],
        key: Callable[[T], str],
    ) -> BatchResult[T]:
        result: BatchResult[T] = BatchResult()

        for item in batch:
            try:
                delete_func(item)
            except OperationCancelled:
                raise
            except Exception as e:
                self._record_failure(result, item, key, e)
            else:
                result.successful.append(item)
                logger.debug(f"Successfully deleted {key(item)}")

        return result

    @staticmethod
    def _record_failure(
        result: BatchResult[T],
        item: T,
        key: Callable[[T], str],
        error: Exception,
    ) -> None:
        item_key = key(item)
        result.failed.append(item)
        result.errors[item_key] = error
        logger.warning(f"Failed to delete {item_key}: {error}")
