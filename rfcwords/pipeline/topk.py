"""
Top-K selection over word frequency mappings using a bounded min-heap.
"""

import heapq
from itertools import count as _counter
from typing import List, Mapping, NamedTuple


class Entry(NamedTuple):
    """A word and its occurrence count."""
    word: str
    count: int


def top_k(frequencies: Mapping[str, int], k: int) -> List[Entry]:
    """
    Select the k most frequent entries of a mapping.

    A min-heap of at most k items is kept while walking the mapping once, so
    the cost is O(n log k). Among equal counts the entry seen first wins; the
    mapping's iteration order decides that, so callers should not rely on it.

    Args:
        frequencies: Word to count mapping. It is not modified.
        k: Number of entries wanted

    Returns:
        min(k, len(frequencies)) entries, highest count first

    Raises:
        ValueError: If k is negative
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    if k == 0 or not frequencies:
        return []

    # (count, -order, word): the smallest item is the lowest count and,
    # among equal counts, the one seen last
    heap = []
    order = _counter()
    for word, count in frequencies.items():
        item = (count, -next(order), word)
        if len(heap) < k:
            heapq.heappush(heap, item)
        elif item > heap[0]:
            heapq.heapreplace(heap, item)

    heap.sort(reverse=True)
    return [Entry(word, count) for count, _, word in heap]


def most_frequent(frequencies: Mapping[str, int]):
    """Return the single highest-count Entry, or None for an empty mapping."""
    entries = top_k(frequencies, 1)
    return entries[0] if entries else None
