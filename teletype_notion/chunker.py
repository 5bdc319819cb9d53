"""
Block batch chunker.

The document API accepts at most 1000 children per append request, so a
section's blocks are sent in batches of at most 999.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")

BATCH_LIMIT = 999


def chunk(blocks: Sequence[T], limit: int = BATCH_LIMIT) -> list[list[T]]:
    """
    Split a sequence into consecutive batches of `limit` items.

    Every batch but the last holds exactly `limit` items and concatenating
    the batches gives back the input. An empty input gives no batches.

    Raises:
        ValueError: if limit is smaller than 1
    """
    if limit < 1:
        raise ValueError(f"Batch limit must be at least 1, got {limit}")

    batches: list[list[T]] = []
    for item in blocks:
        if not batches or len(batches[-1]) == limit:
            batches.append([])
        batches[-1].append(item)
    return batches
