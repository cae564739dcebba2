"""
Word count analysis for CFR title structures.

Walks a title hierarchy once and reduces it to per-element counts, totals per
hierarchy level, the longest elements and the list of sections. Only a node's
own content is attributed to that node; descendants' content is folded into
the title total alone.
"""

import logging
from operator import attrgetter
from typing import Dict, Iterable, List, Optional

from .models import (
    ElementWordCount,
    HierarchyWordCount,
    StructureNode,
    WordCountResult,
)


logger = logging.getLogger(__name__)

TOP_ELEMENT_LIMIT = 10


def count_words(text: Optional[str]) -> int:
    """
    Count whitespace-delimited words in a string.

    Args:
        text: Text to count words in

    Returns:
        Number of words (0 for None or blank text)
    """
    if not text:
        return 0
    return len(text.split())


def node_content(node: StructureNode) -> str:
    """
    Extract a node's own text content.

    Args:
        node: Structure node

    Returns:
        The 'content' and 'text' fields joined by a space and trimmed
    """
    content = ''
    if node.content:
        content += node.content
    if node.text:
        content += ' ' + node.text
    return content.strip()


def analyze_tree(root: StructureNode) -> WordCountResult:
    """
    Analyze word counts for a title structure.

    Args:
        root: Root node of the title structure

    Returns:
        WordCountResult for the whole tree
    """
    elements: List[ElementWordCount] = []
    # type -> [node count, own words]
    hierarchy_counts: Dict[str, List[int]] = {}

    for node in root.walk():
        content = node_content(node)
        element = ElementWordCount(
            identifier=node.identifier,
            type=node.type,
            label=node.label,
            word_count=count_words(content),
            character_count=len(content)
        )
        elements.append(element)

        counts = hierarchy_counts.setdefault(node.type, [0, 0])
        counts[0] += 1
        counts[1] += element.word_count

    total_words = sum(element.word_count for element in elements)
    total_characters = sum(element.character_count for element in elements)

    by_hierarchy = tuple(
        HierarchyWordCount(
            type=node_type,
            count=count,
            total_words=words,
            average_words=words / count
        )
        for node_type, (count, words) in sorted(hierarchy_counts.items())
    )

    # sorted() is stable, so equal counts keep encounter order
    top_elements = tuple(
        sorted(elements, key=attrgetter('word_count'), reverse=True)[:TOP_ELEMENT_LIMIT]
    )
    sections = tuple(element for element in elements if element.type == 'section')

    logger.debug(
        f"Analyzed {len(elements)} elements for {root.identifier}: "
        f"{total_words} words across {len(by_hierarchy)} hierarchy levels"
    )

    return WordCountResult(
        title=root.title_number,
        title_name=root.label,
        total_words=total_words,
        total_characters=total_characters,
        total_elements=len(elements),
        by_hierarchy=by_hierarchy,
        top_elements=top_elements,
        sections=sections
    )


def analyze_titles(roots: Iterable[StructureNode]) -> List[WordCountResult]:
    """Analyze word counts for several title structures."""
    return [analyze_tree(root) for root in roots]
