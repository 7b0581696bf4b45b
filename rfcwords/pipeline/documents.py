"""
Document identifier generation.
"""

from typing import List

from ..utils.config import DocumentsConfig


def document_urls(url_template: str, first: int, last: int) -> List[str]:
    """
    Build the URLs of documents first..last inclusive.

    Args:
        url_template: Template with a '{number}' placeholder
        first: First document number
        last: Last document number

    Returns:
        URLs in ascending document order
    """
    if first > last:
        return []
    return [url_template.format(number=number) for number in range(first, last + 1)]


def urls_from_config(config: DocumentsConfig) -> List[str]:
    """Build the document URLs described by a DocumentsConfig."""
    return document_urls(config.url_template, config.first, config.last)
