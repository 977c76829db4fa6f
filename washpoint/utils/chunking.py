"""Chunked ``IN (...)`` lookups.

Some deployments sit behind a query layer that caps the size of a value-in-set
filter. Lookups by many ids go through ``fetch_in_chunks`` so the cap lives in
one place (``settings.in_query_chunk_size``).
"""

from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TypeVar

from washpoint.config import settings

T = TypeVar("T")
R = TypeVar("R")


def chunked(values: Iterable[T], size: int | None = None) -> list[list[T]]:
    """Split values into consecutive lists of at most ``size`` items.

    Duplicates are dropped, first occurrence wins.
    """
    size = size or settings.in_query_chunk_size
    if size < 1:
        raise ValueError("chunk size must be positive")

    unique: list[T] = list(dict.fromkeys(values))
    return [unique[i:i + size] for i in range(0, len(unique), size)]


async def fetch_in_chunks(
    values: Iterable[T],
    fetch: Callable[[list[T]], Awaitable[Sequence[R]]],
    size: int | None = None,
) -> list[R]:
    """Run ``fetch`` once per chunk and merge the results in chunk order."""
    merged: list[R] = []
    for chunk in chunked(values, size):
        merged.extend(await fetch(chunk))
    return merged
