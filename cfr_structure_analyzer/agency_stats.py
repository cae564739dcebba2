"""
Agency reference statistics.

Reduces a forest of agencies (with nested sub-agencies) to one statistics
record per agency that references the CFR, then cross-references those records
with the title registry to show how agencies are spread across titles.
"""

import logging
from operator import attrgetter
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .models import (
    AgencyNode,
    AgencyStat,
    AgencyStatsResult,
    TitleDistribution,
    TitleEntry,
)


logger = logging.getLogger(__name__)

# Number of CFR titles assumed when no registry is supplied
DEFAULT_TITLE_COUNT = 50
TOP_AGENCY_LIMIT = 10


def agency_stat(agency: AgencyNode) -> Optional[AgencyStat]:
    """
    Build the statistics record for a single agency node.

    Only the node's own references count; sub-agencies get their own records.

    Args:
        agency: Agency node

    Returns:
        AgencyStat, or None if the agency references no titles
    """
    titles: Set[int] = set()
    chapters: Set[Tuple[int, str]] = set()
    parts: Set[Tuple[int, str]] = set()

    for reference in agency.cfr_references:
        titles.add(reference.title)
        if reference.chapter:
            chapters.add((reference.title, reference.chapter))
        if reference.part:
            parts.add((reference.title, reference.part))

    if not titles:
        return None

    return AgencyStat(
        name=agency.name,
        slug=agency.slug,
        short_name=agency.short_name,
        title_count=len(titles),
        chapter_count=len(chapters),
        part_count=len(parts),
        titles=tuple(sorted(titles))
    )


def collect_agency_stats(roots: Sequence[AgencyNode]) -> Dict[str, AgencyStat]:
    """
    Walk every agency in the forest and key the resulting stats by slug.

    Slugs are not unique across the source data; when two agencies share a
    slug the one visited later replaces the earlier record.

    Args:
        roots: Top-level agencies

    Returns:
        Mapping of slug to AgencyStat in first-visit order
    """
    stats: Dict[str, AgencyStat] = {}

    for root in roots:
        for agency in root.walk():
            stat = agency_stat(agency)
            if stat is None:
                continue
            if agency.slug in stats:
                logger.debug(f"Duplicate agency slug {agency.slug}: replacing earlier record")
            stats[agency.slug] = stat

    return stats


def _title_names(title_registry: Optional[Sequence[TitleEntry]]) -> Dict[int, str]:
    names: Dict[int, str] = {}
    for title in title_registry or ():
        names.setdefault(title.number, title.name)
    return names


def analyze_forest(roots: Sequence[AgencyNode],
                   title_registry: Optional[Sequence[TitleEntry]] = None) -> AgencyStatsResult:
    """
    Analyze agency statistics for an agency forest.

    Args:
        roots: Top-level agencies (sub-agencies are reached through children)
        title_registry: Titles summary used for title names and the title total

    Returns:
        AgencyStatsResult for the forest
    """
    roots = list(roots)
    all_stats = list(collect_agency_stats(roots).values())

    agencies_with_references = len(all_stats)
    total_titles = len(title_registry) if title_registry is not None else DEFAULT_TITLE_COUNT

    total_title_references = sum(stat.title_count for stat in all_stats)
    if agencies_with_references > 0:
        average_titles_per_agency = total_title_references / agencies_with_references
    else:
        average_titles_per_agency = 0.0

    top_agencies = tuple(
        sorted(all_stats, key=attrgetter('title_count'), reverse=True)[:TOP_AGENCY_LIMIT]
    )

    # title -> agency slugs, kept as dict keys to preserve encounter order
    title_agencies: Dict[int, Dict[str, None]] = {}
    for stat in all_stats:
        for title_number in stat.titles:
            title_agencies.setdefault(title_number, {})[stat.slug] = None

    names = _title_names(title_registry)
    distribution = [
        TitleDistribution(
            title_number=title_number,
            title_name=names.get(title_number) or f"Title {title_number}",
            agency_count=len(slugs),
            agencies=tuple(slugs)
        )
        for title_number, slugs in title_agencies.items()
    ]
    distribution.sort(key=attrgetter('agency_count'), reverse=True)

    logger.info(
        f"Analyzed {len(roots)} agencies: {agencies_with_references} with CFR references "
        f"across {len(distribution)} titles"
    )

    return AgencyStatsResult(
        total_agencies=len(roots),
        agencies_with_references=agencies_with_references,
        total_titles=total_titles,
        average_titles_per_agency=average_titles_per_agency,
        top_agencies=top_agencies,
        title_distribution=tuple(distribution)
    )


def stat_by_slug(roots: Sequence[AgencyNode], slug: str) -> Optional[AgencyStat]:
    """
    Get statistics for a specific agency by slug.

    Args:
        roots: Top-level agencies
        slug: Agency slug

    Returns:
        AgencyStat, or None if no agency with references has that slug
    """
    return collect_agency_stats(roots).get(slug)


def stats_referencing_title(roots: Sequence[AgencyNode], title_number: int) -> List[AgencyStat]:
    """
    Get all agencies that reference a specific title.

    Args:
        roots: Top-level agencies
        title_number: CFR title number

    Returns:
        AgencyStat records whose titles include title_number
    """
    return [
        stat for stat in collect_agency_stats(roots).values()
        if title_number in stat.titles
    ]
