"""Tests for the PipelineOrchestrator."""

import asyncio
from collections import Counter

import pytest

from rfcwords.pipeline import orchestrator as orchestrator_module
from rfcwords.pipeline.channel import Channel, ChannelClosedError
from rfcwords.pipeline.extractor import extract_words
from rfcwords.pipeline.fetcher import FetchResult
from rfcwords.pipeline.orchestrator import PipelineOrchestrator
from rfcwords.utils.config import Config, PipelineConfig, ReportConfig


DOCUMENTS = {
    "rfc1": "Specification specification specification implementation acknowledgement",
    "rfc2": "implementation implementation retransmission short words only here",
    "rfc3": "acknowledgement acknowledgement acknowledgement Specification",
    "rfc4": "nothing long enough",
    "rfc5": "retransmission retransmission internetworking internetworking internetworking",
}


class FakeFetcher:
    """Fetcher serving canned documents with an optional failing set."""

    def __init__(self, documents, failing=(), delay=0.001):
        self.documents = documents
        self.failing = set(failing)
        self.delay = delay

    async def fetch(self, url):
        await asyncio.sleep(self.delay)
        if url in self.failing:
            return FetchResult(url=url, status_code=0, error="Client error: connection refused")
        return FetchResult(url=url, status_code=200, content=self.documents[url])


def make_config(num_workers=3, queue_size=2, top=3):
    return Config(
        pipeline=PipelineConfig(
            num_workers=num_workers,
            job_queue_size=queue_size,
            result_queue_size=queue_size
        ),
        report=ReportConfig(global_top_n=top)
    )


@pytest.mark.asyncio
async def test_no_data_loss_under_full_success():
    """Test that totals equal the sum of every document's counts."""
    orchestrator = PipelineOrchestrator(make_config(), fetcher=FakeFetcher(DOCUMENTS))

    summary = await asyncio.wait_for(orchestrator.run(list(DOCUMENTS)), timeout=5)

    expected = Counter()
    for text in DOCUMENTS.values():
        expected.update(extract_words(text))
    assert summary.totals == expected
    assert len(summary.reports) == len(DOCUMENTS)
    assert summary.documents_failed == 0


@pytest.mark.asyncio
async def test_per_document_reports():
    """Test that each document reports its most frequent word."""
    orchestrator = PipelineOrchestrator(make_config(), fetcher=FakeFetcher(DOCUMENTS))

    summary = await orchestrator.run(list(DOCUMENTS))
    reports = {report.url: report for report in summary.reports}

    assert reports["rfc1"].top.word == "specification"
    assert reports["rfc1"].top.count == 2
    assert reports["rfc3"].top.count == 3
    assert reports["rfc4"].top is None
    assert reports["rfc5"].top.word == "internetworking"


@pytest.mark.asyncio
async def test_fault_isolation():
    """Test that one failing document does not stop the run."""
    fetcher = FakeFetcher(DOCUMENTS, failing={"rfc3"})
    orchestrator = PipelineOrchestrator(make_config(), fetcher=fetcher)

    summary = await asyncio.wait_for(orchestrator.run(list(DOCUMENTS)), timeout=5)

    expected = Counter()
    for url, text in DOCUMENTS.items():
        if url != "rfc3":
            expected.update(extract_words(text))
    assert summary.totals == expected
    assert summary.documents_failed == 1
    assert len(summary.reports) == len(DOCUMENTS)


@pytest.mark.asyncio
async def test_global_top_words():
    """Test the overall top words computed from the totals."""
    orchestrator = PipelineOrchestrator(make_config(top=2), fetcher=FakeFetcher(DOCUMENTS))

    summary = await orchestrator.run(list(DOCUMENTS))

    assert [entry.count for entry in summary.top_words] == [4, 3]
    assert summary.top_words[0].word == "acknowledgement"


@pytest.mark.asyncio
async def test_global_top_words_disabled():
    """Test that a top count of zero skips the overall ranking."""
    orchestrator = PipelineOrchestrator(make_config(top=0), fetcher=FakeFetcher(DOCUMENTS))

    summary = await orchestrator.run(list(DOCUMENTS))

    assert summary.top_words == []
    assert summary.totals


@pytest.mark.asyncio
async def test_empty_identifier_list():
    """Test that a run with no documents completes."""
    orchestrator = PipelineOrchestrator(make_config(), fetcher=FakeFetcher({}))

    summary = await asyncio.wait_for(orchestrator.run([]), timeout=5)

    assert summary.totals == Counter()
    assert summary.reports == []


@pytest.mark.asyncio
async def test_more_workers_than_documents():
    """Test that idle workers exit cleanly once jobs is drained."""
    orchestrator = PipelineOrchestrator(
        make_config(num_workers=10, queue_size=1), fetcher=FakeFetcher(DOCUMENTS)
    )

    summary = await asyncio.wait_for(orchestrator.run(list(DOCUMENTS)), timeout=5)

    assert summary.pool_stats.workers_finished == 10
    assert len(summary.reports) == len(DOCUMENTS)


@pytest.mark.asyncio
async def test_results_closed_only_after_workers_exit(monkeypatch):
    """Test the shutdown order of workers, results and aggregator."""
    events = []
    pools = []

    class RecordingChannel(Channel):
        async def close(self):
            if self.name == "results":
                pool = pools[0]
                events.append(("close results", pool.stats.workers_finished))
            await super().close()

    original_pool = orchestrator_module.WorkerPool

    def recording_pool(*args, **kwargs):
        pool = original_pool(*args, **kwargs)
        pools.append(pool)
        return pool

    original_run = orchestrator_module.Aggregator.run

    async def recording_run(self, results):
        await original_run(self, results)
        events.append(("aggregator done", results.drained))

    monkeypatch.setattr(orchestrator_module, "Channel", RecordingChannel)
    monkeypatch.setattr(orchestrator_module, "WorkerPool", recording_pool)
    monkeypatch.setattr(orchestrator_module.Aggregator, "run", recording_run)

    orchestrator = PipelineOrchestrator(make_config(num_workers=4), fetcher=FakeFetcher(DOCUMENTS))
    await orchestrator.run(list(DOCUMENTS))

    assert events == [("close results", 4), ("aggregator done", True)]


@pytest.mark.asyncio
async def test_send_on_closed_results_is_fatal(monkeypatch):
    """Test that a pipeline ordering violation propagates."""

    class EarlyClosingFetcher(FakeFetcher):
        """Closes the results channel underneath the workers."""

        async def fetch(self, url):
            if not self.results.closed:
                await self.results.close()
            return await super().fetch(url)

    fetcher = EarlyClosingFetcher(DOCUMENTS)
    original_channel = orchestrator_module.Channel

    def capturing_channel(maxsize, name="channel"):
        channel = original_channel(maxsize, name=name)
        if name == "results":
            fetcher.results = channel
        return channel

    monkeypatch.setattr(orchestrator_module, "Channel", capturing_channel)

    orchestrator = PipelineOrchestrator(make_config(queue_size=10), fetcher=fetcher)
    with pytest.raises(ChannelClosedError):
        await asyncio.wait_for(orchestrator.run(list(DOCUMENTS)), timeout=5)


@pytest.mark.asyncio
async def test_aggregator_failure_does_not_hang_workers(monkeypatch):
    """Test that a failing aggregator stops the run and leaves no tasks behind."""

    def failing_merge(self, frequencies):
        raise RuntimeError("merge failed")

    monkeypatch.setattr(orchestrator_module.Aggregator, "merge", failing_merge)

    orchestrator = PipelineOrchestrator(
        make_config(num_workers=3, queue_size=1), fetcher=FakeFetcher(DOCUMENTS)
    )
    with pytest.raises(RuntimeError, match="merge failed"):
        await asyncio.wait_for(orchestrator.run(list(DOCUMENTS)), timeout=5)

    leftover = asyncio.all_tasks() - {asyncio.current_task()}
    assert all(task.done() for task in leftover)


@pytest.mark.asyncio
async def test_generator_failure_leaves_no_pending_tasks(monkeypatch):
    """Test that a failing job generator stops the run and its stage tasks are awaited."""

    async def failing_send(self, item):
        raise ChannelClosedError(f"send on closed {self.name}")

    monkeypatch.setattr(Channel, "send", failing_send)

    orchestrator = PipelineOrchestrator(make_config(), fetcher=FakeFetcher(DOCUMENTS))
    with pytest.raises(ChannelClosedError):
        await asyncio.wait_for(orchestrator.run(list(DOCUMENTS)), timeout=5)

    leftover = asyncio.all_tasks() - {asyncio.current_task()}
    assert all(task.done() for task in leftover)


def test_get_stats():
    """Test the flattened statistics of a summary."""
    summary = orchestrator_module.RunSummary(start_time=0.0, end_time=2.5)
    summary.totals = Counter({"specification": 2, "implementation": 1})

    stats = PipelineOrchestrator(make_config()).get_stats(summary)

    assert stats['distinct_words'] == 2
    assert stats['total_words'] == 3
    assert stats['documents_processed'] == 0
    assert stats['elapsed_time'] == 2.5
