"""Bounded batch writes that tolerate duplicate-key rejections."""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import TypeVar

from bank_reconciliation.exceptions import DuplicateKeyError
from bank_reconciliation.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of at most ``size`` items, preserving order."""
    if size < 1:
        raise ValueError("size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


@dataclass
class BatchWriteResult:
    written: int = 0
    duplicates: int = 0
    batches: int = 0


def write_in_batches(
    items: Sequence[T],
    size: int,
    write: Callable[[Sequence[T]], None],
    *,
    label: str,
) -> BatchWriteResult:
    """Persist ``items`` through ``write`` in batches of ``size``.

    ``write`` must be atomic per call. A batch rejected with
    DuplicateKeyError is retried one item at a time, so items that are new
    still get stored and those already present are counted as duplicates.
    Any other error propagates and aborts the remaining batches; batches
    already written stay written.
    """
    result = BatchWriteResult()
    for index, batch in enumerate(chunked(items, size)):
        result.batches += 1
        try:
            write(batch)
            result.written += len(batch)
            continue
        except DuplicateKeyError as e:
            logger.info(
                f"{label}_batch_duplicate",
                batch=index,
                batch_size=len(batch),
                table=e.table,
            )

        for item in batch:
            try:
                write([item])
                result.written += 1
            except DuplicateKeyError:
                result.duplicates += 1

    logger.debug(
        f"{label}_batches_written",
        batches=result.batches,
        written=result.written,
        duplicates=result.duplicates,
    )
    return result
