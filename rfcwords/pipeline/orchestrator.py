"""
Pipeline orchestrator that wires the generator, worker pool and aggregator
together and shuts them down in order.
"""

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .aggregator import Aggregator, DocumentReport
from .channel import Channel
from .fetcher import WebFetcher
from .topk import Entry, top_k
from .worker_pool import PoolStats, WorkerPool
from ..utils.config import Config


@dataclass
class RunSummary:
    """Outcome of one pipeline run."""
    start_time: float
    totals: Counter = field(default_factory=Counter)
    reports: List[DocumentReport] = field(default_factory=list)
    top_words: List[Entry] = field(default_factory=list)
    pool_stats: PoolStats = field(default_factory=PoolStats)
    end_time: Optional[float] = None

    @property
    def elapsed_time(self) -> float:
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    @property
    def documents_failed(self) -> int:
        return sum(1 for report in self.reports if report.error is not None)


class PipelineOrchestrator:
    """
    Runs one pass over a finite list of document URLs.

    Shutdown order: the pool finishes, then results is closed, then the
    aggregator drains it. The aggregator is started before any worker.
    """

    def __init__(self, config: Config, fetcher=None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.fetcher = fetcher
        self._owns_fetcher = fetcher is None

    async def run(self, identifiers: Sequence[str]) -> RunSummary:
        """
        Process every identifier and return the aggregated summary.

        Raises:
            ChannelClosedError: If a stage sends on a closed channel
        """
        summary = RunSummary(start_time=time.time())
        pipeline_config = self.config.pipeline

        if self.fetcher is None:
            self.fetcher = WebFetcher.from_config(
                self.config.fetcher, max_connections=pipeline_config.num_workers
            )

        jobs = Channel(pipeline_config.job_queue_size, name="jobs")
        results = Channel(pipeline_config.result_queue_size, name="results")

        aggregator = Aggregator()
        pool = WorkerPool(self.fetcher, num_workers=pipeline_config.num_workers)

        self.logger.info(
            f"Processing {len(identifiers)} documents with {pipeline_config.num_workers} workers"
        )

        if self._owns_fetcher:
            await self.fetcher.start()

        aggregator_task = asyncio.create_task(aggregator.run(results))
        pool_task = generator_task = None
        try:
            pool_task = asyncio.create_task(pool.run(jobs, results))
            generator_task = asyncio.create_task(self._generate(identifiers, jobs))

            # A failed generator or aggregator would leave workers blocked forever
            stages = {pool_task, generator_task, aggregator_task}
            while not pool_task.done():
                done, stages = await asyncio.wait(stages, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    task.result()

            await pool_task
            await generator_task
            await results.close()
            await aggregator_task
        except BaseException:
            pending = [task for task in (aggregator_task, pool_task, generator_task)
                       if task is not None and not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise
        finally:
            if self._owns_fetcher:
                await self.fetcher.close()
                self.fetcher = None

        summary.totals = aggregator.totals
        summary.reports = aggregator.reports
        summary.pool_stats = pool.stats
        summary.top_words = top_k(aggregator.totals, self.config.report.global_top_n)
        summary.end_time = time.time()

        self._log_summary(summary)
        return summary

    async def _generate(self, identifiers: Sequence[str], jobs: Channel):
        """Send every identifier in order, then close the jobs channel."""
        for identifier in identifiers:
            await jobs.send(identifier)
        await jobs.close()
        self.logger.debug(f"Generated {len(identifiers)} jobs")

    def _log_summary(self, summary: RunSummary):
        self.logger.info("=== RUN COMPLETED ===")
        self.logger.info(f"Documents processed: {len(summary.reports)}")
        self.logger.info(f"Documents failed: {summary.documents_failed}")
        self.logger.info(f"Distinct long words: {len(summary.totals)}")
        self.logger.info(f"Total long words: {sum(summary.totals.values())}")
        self.logger.info(f"Total time: {summary.elapsed_time:.2f} seconds")

        if summary.top_words:
            self.logger.info(f"Top {len(summary.top_words)} words overall:")
            for rank, entry in enumerate(summary.top_words, start=1):
                self.logger.info(f"  {rank}. {entry.word}: {entry.count}")

    def get_stats(self, summary: RunSummary) -> Dict:
        """Flatten a summary into a dictionary of statistics."""
        return {
            'documents_processed': len(summary.reports),
            'documents_failed': summary.documents_failed,
            'distinct_words': len(summary.totals),
            'total_words': sum(summary.totals.values()),
            'characters_read': summary.pool_stats.characters_read,
            'elapsed_time': summary.elapsed_time,
        }
