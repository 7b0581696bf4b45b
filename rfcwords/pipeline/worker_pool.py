"""
Fixed-size pool of fetch-and-count workers.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .channel import Channel
from .extractor import FrequencyMap, extract_words
from .fetcher import FetchResult
from ..utils.logger import get_pipeline_logger


@dataclass
class DocumentResult:
    """Word counts for one document, as sent to the aggregator."""
    url: str
    frequencies: FrequencyMap = field(default_factory=dict)
    error: Optional[str] = None
    fetch_time: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class PoolStats:
    """Statistics for one pool run."""
    documents_processed: int = 0
    documents_failed: int = 0
    characters_read: int = 0
    workers_started: int = 0
    workers_finished: int = 0


class WorkerPool:
    """
    Runs a fixed number of workers that pull URLs from the jobs channel, fetch
    and count each document, and send the counts to the results channel.
    A failed fetch produces an empty result and never stops a worker.
    """

    def __init__(self, fetcher, num_workers: int = 10):
        if num_workers < 1:
            raise ValueError("num_workers must be at least 1")
        self.fetcher = fetcher
        self.num_workers = num_workers
        self.logger = logging.getLogger(__name__)
        self.doc_logger = get_pipeline_logger(__name__)
        self.stats = PoolStats()
        self.workers: List[asyncio.Task] = []

    async def run(self, jobs: Channel, results: Channel):
        """
        Start the workers and wait until every one of them has exited.

        Workers exit once jobs is closed and drained. Errors other than fetch
        failures (such as sending on a closed results channel) propagate.
        """
        self.stats = PoolStats()
        self.workers = [
            asyncio.create_task(self._worker(f"worker-{i}", jobs, results))
            for i in range(self.num_workers)
        ]
        self.stats.workers_started = len(self.workers)
        self.logger.info(f"Started {self.num_workers} workers")

        try:
            await asyncio.gather(*self.workers)
        except BaseException:
            for worker in self.workers:
                worker.cancel()
            await asyncio.gather(*self.workers, return_exceptions=True)
            raise

        self.logger.info(
            f"All workers finished: processed={self.stats.documents_processed}, "
            f"failed={self.stats.documents_failed}"
        )

    async def _worker(self, worker_id: str, jobs: Channel, results: Channel):
        self.logger.debug(f"Worker {worker_id} started")

        async for url in jobs:
            result = await self._process(url, worker_id)
            await results.send(result)

        self.stats.workers_finished += 1
        self.logger.debug(f"Worker {worker_id} finished")

    async def _process(self, url: str, worker_id: str) -> DocumentResult:
        """Fetch and count one document."""
        try:
            fetch_result: FetchResult = await self.fetcher.fetch(url)
        except Exception as e:
            self.logger.error(f"Worker {worker_id} unexpected error fetching {url}: {e}",
                              exc_info=True)
            fetch_result = FetchResult(url=url, status_code=0, error=f"Unexpected error: {e}")

        self.stats.documents_processed += 1

        if fetch_result.error is not None or fetch_result.content is None:
            self.stats.documents_failed += 1
            error = fetch_result.error or "No content"
            self.doc_logger.log_document_event(
                logging.WARNING, url, f"No data for {url}: {error}"
            )
            return DocumentResult(url=url, error=error, fetch_time=fetch_result.fetch_time)

        self.stats.characters_read += len(fetch_result.content)
        frequencies = extract_words(fetch_result.content)
        self.logger.debug(f"{worker_id} counted {len(frequencies)} distinct long words in {url}")

        return DocumentResult(
            url=url,
            frequencies=frequencies,
            fetch_time=fetch_result.fetch_time
        )
