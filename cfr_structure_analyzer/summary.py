"""
Summary statistics across several analyzed titles.
"""

import logging
from operator import attrgetter
from typing import Sequence

from .error_handler import EmptyBatchError
from .models import WordCountResult, WordCountSummary


logger = logging.getLogger(__name__)


def summarize(results: Sequence[WordCountResult]) -> WordCountSummary:
    """
    Summarize a batch of word count results.

    Args:
        results: Word count results, one per title

    Returns:
        WordCountSummary; ties for longest/shortest go to the earliest result

    Raises:
        EmptyBatchError: If results is empty
    """
    results = list(results)
    if not results:
        raise EmptyBatchError("Cannot summarize an empty batch of word count results")

    total_words = sum(result.total_words for result in results)
    total_elements = sum(result.total_elements for result in results)

    # max() and min() return the first extreme they meet
    longest = max(results, key=attrgetter('total_words'))
    shortest = min(results, key=attrgetter('total_words'))

    logger.debug(f"Summarized {len(results)} titles with {total_words} words")

    return WordCountSummary(
        title_count=len(results),
        total_words=total_words,
        total_elements=total_elements,
        average_words_per_title=total_words / len(results),
        longest_title=longest,
        shortest_title=shortest
    )
