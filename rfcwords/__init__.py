"""
RFC Long-Word Statistics

Fetches a range of documents concurrently and reports long-word frequencies.
"""

__version__ = "1.0.0"
__description__ = "Concurrent long-word frequency statistics over fetched documents"
