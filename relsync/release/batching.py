from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from relsync.core.result import Err, Ok, Result
from relsync.release.errors import ReleaseError

T = TypeVar("T")

# Keys per tracker search; bounds the length of the ``issuekey in (...)`` clause.
DEFAULT_ISSUE_BATCH_SIZE = 100

BatchSearch = Callable[[tuple[str, ...]], Result[list[T], ReleaseError]]


def plan_batches(keys: Sequence[str], batch_size: int) -> list[tuple[str, ...]]:
    """Split ``keys`` into contiguous chunks ``[i*B, i*B+B)``.

    The last chunk may be shorter; no chunk is ever empty.

    Raises:
        ValueError: ``batch_size`` is smaller than 1.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [tuple(keys[i : i + batch_size]) for i in range(0, len(keys), batch_size)]


def search_in_batches(
    keys: Sequence[str],
    *,
    batch_size: int,
    search: BatchSearch[T],
) -> Result[list[T], ReleaseError]:
    """Run ``search`` once per batch, sequentially, and concatenate the results.

    Zero keys issue no search at all. The first failing batch aborts the
    whole search with its error.
    """
    merged: list[T] = []
    for batch in plan_batches(keys, batch_size):
        result = search(batch)
        if isinstance(result, Err):
            return result
        merged.extend(result.value)
    return Ok(merged)
