"""
Long-word extraction from raw document text.
"""

from collections import Counter
from itertools import groupby
from typing import Dict

# Tokens must be strictly longer than 12 characters to be counted
MIN_WORD_LENGTH = 13

FrequencyMap = Dict[str, int]


def _is_word_char(char: str) -> bool:
    # Numeric characters that also classify as letters still separate words
    return char.isalpha() and not char.isnumeric()


def extract_words(text: str) -> FrequencyMap:
    """
    Count the long words in a piece of text.

    The text is split into maximal runs of letter characters; anything that is
    not a letter, or is numeric, acts as a separator. Only runs of at least
    MIN_WORD_LENGTH characters are counted. Case is preserved.

    Args:
        text: Raw document text

    Returns:
        Counter mapping each qualifying word to its number of occurrences
    """
    counts = Counter()

    for is_word, chars in groupby(text, key=_is_word_char):
        if not is_word:
            continue
        word = ''.join(chars)
        if len(word) >= MIN_WORD_LENGTH:
            counts[word] += 1

    return counts
