"""
Aggregator that owns the running word totals.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .channel import Channel
from .topk import Entry, most_frequent
from ..utils.logger import get_pipeline_logger


@dataclass
class DocumentReport:
    """Most frequent qualifying word of one document."""
    url: str
    top: Optional[Entry] = None
    error: Optional[str] = None


class Aggregator:
    """
    Single consumer of the results channel.

    It is the only writer of `totals`; read totals only after `run` returns.
    For each document received it merges the counts and reports the
    document's most frequent word.
    """

    def __init__(self):
        self.totals: Counter = Counter()
        self.reports: List[DocumentReport] = []
        self.documents_received = 0
        self.completed = asyncio.Event()
        self.logger = logging.getLogger(__name__)
        self.doc_logger = get_pipeline_logger(__name__)

    def merge(self, frequencies: Mapping[str, int]):
        """Add one document's counts to the totals."""
        for word, count in frequencies.items():
            self.totals[word] += count

    async def run(self, results: Channel):
        """Consume results until the channel is closed and drained."""
        async for result in results:
            self.documents_received += 1
            self.merge(result.frequencies)
            self.reports.append(self._report(result))

        self.completed.set()
        self.logger.info(
            f"Aggregation complete: {self.documents_received} documents, "
            f"{len(self.totals)} distinct words"
        )

    def _report(self, result) -> DocumentReport:
        top = most_frequent(result.frequencies)

        if top is not None:
            self.doc_logger.log_document_event(
                logging.INFO, result.url,
                f"{result.url}: most frequent word '{top.word}' ({top.count})",
                extra={'word': top.word, 'count': top.count}
            )
        elif result.error is None:
            self.doc_logger.log_document_event(
                logging.INFO, result.url, f"{result.url}: no qualifying words"
            )

        return DocumentReport(url=result.url, top=top, error=result.error)
