"""
Pipeline core components.
"""

from .channel import Channel, ChannelClosedError
from .extractor import extract_words, MIN_WORD_LENGTH
from .topk import Entry, top_k, most_frequent
from .fetcher import WebFetcher, FetchResult
from .worker_pool import WorkerPool, DocumentResult
from .aggregator import Aggregator, DocumentReport
from .orchestrator import PipelineOrchestrator, RunSummary
from .documents import document_urls, urls_from_config

__all__ = [
    'Channel', 'ChannelClosedError',
    'extract_words', 'MIN_WORD_LENGTH',
    'Entry', 'top_k', 'most_frequent',
    'WebFetcher', 'FetchResult',
    'WorkerPool', 'DocumentResult',
    'Aggregator', 'DocumentReport',
    'PipelineOrchestrator', 'RunSummary',
    'document_urls', 'urls_from_config'
]
