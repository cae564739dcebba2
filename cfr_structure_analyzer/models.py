"""
Data models for the CFR Structure Analyzer.

This module defines the typed tree structures used throughout the application
for representing CFR title hierarchies, agency hierarchies and the title
registry, together with the immutable result records produced by the analysis
engine and the bookkeeping records kept alongside downloaded fixtures.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple


class StructureNodeType(Enum):
    """Hierarchy levels found in an eCFR title structure."""
    TITLE = "title"
    SUBTITLE = "subtitle"
    CHAPTER = "chapter"
    SUBCHAPTER = "subchapter"
    PART = "part"
    SUBPART = "subpart"
    SUBJECT = "subject"
    SECTION = "section"
    APPENDIX = "appendix"


class DownloadType(Enum):
    """Kinds of fixture downloads recorded in the fixture metadata."""
    AGENCIES = "agencies"
    TITLES_SUMMARY = "titles-summary"
    TITLE = "title"


class DownloadStatus(Enum):
    """Outcome of a fixture download."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


def _optional_str(data: Dict[str, Any], key: str, owner: str) -> Optional[str]:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"{owner} field '{key}' must be a string, got {type(value).__name__}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _build_tree(data: Any, make_node: Callable[[Dict[str, Any], Tuple[Any, ...]], Any],
                owner: str) -> Any:
    """
    Build a tree of frozen nodes from nested dictionaries.

    Nodes are collected in pre-order with an explicit stack and then built in
    reverse, so every node is created after all of its descendants and deep
    input never touches the interpreter recursion limit.

    Args:
        data: Raw root dictionary with an optional 'children' list
        make_node: Callable building one node from its raw data and built children
        owner: Node description used in error messages

    Returns:
        The built root node

    Raises:
        ValueError: If a node is not a dictionary or 'children' is not a list
    """
    order: List[Tuple[Dict[str, Any], int]] = []
    stack: List[Tuple[Any, int]] = [(data, -1)]

    while stack:
        raw, parent_index = stack.pop()
        if not isinstance(raw, dict):
            raise ValueError(f"{owner} must be an object, got {type(raw).__name__}")

        children = raw.get('children')
        if children is None:
            children = []
        elif not isinstance(children, list):
            raise ValueError(f"{owner} field 'children' must be a list")

        index = len(order)
        order.append((raw, parent_index))
        for child in reversed(children):
            stack.append((child, index))

    built_children: List[List[Any]] = [[] for _ in order]
    root = None
    for index in range(len(order) - 1, -1, -1):
        raw, parent_index = order[index]
        # Siblings are built last-to-first
        node = make_node(raw, tuple(reversed(built_children[index])))
        if parent_index >= 0:
            built_children[parent_index].append(node)
        else:
            root = node
    return root


class _TreeNode:
    """Shared traversal for nodes exposing a 'children' tuple."""

    def walk(self) -> Iterator[Any]:
        """Yield this node and all of its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the tree back to nested dictionaries using the source field names."""
        root = self._own_dict()
        stack = [(self, root)]
        while stack:
            node, data = stack.pop()
            if node.children:
                data['children'] = [child._own_dict() for child in node.children]
                stack.extend(zip(node.children, data['children']))
        return root


_STRUCTURE_FIELDS = {'type', 'identifier', 'label', 'content', 'text', 'children'}


@dataclass(frozen=True)
class StructureNode(_TreeNode):
    """
    One element of a CFR title hierarchy.

    The 'type' tag is kept as the raw string so unknown hierarchy levels are
    still analyzed; 'kind' maps it onto StructureNodeType. Source fields other
    than the common ones (reserved, section_number, descendant_range, ...) are
    kept in 'extra'. Equality and repr cover a node's own fields, not its
    children.
    """
    type: str
    identifier: str
    label: Optional[str] = None
    content: Optional[str] = None
    text: Optional[str] = None
    children: Tuple['StructureNode', ...] = field(default=(), compare=False, repr=False)
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        """Validate node data after initialization."""
        if not isinstance(self.type, str):
            raise ValueError("Structure node type must be a string")
        if not isinstance(self.identifier, str):
            raise ValueError("Structure node identifier must be a string")
        if not all(isinstance(child, StructureNode) for child in self.children):
            raise ValueError("Structure node children must be structure nodes")

    @property
    def kind(self) -> Optional[StructureNodeType]:
        """Enumerated hierarchy level, or None for an unrecognized type."""
        try:
            return StructureNodeType(self.type)
        except ValueError:
            return None

    @property
    def is_section(self) -> bool:
        return self.type == StructureNodeType.SECTION.value

    @property
    def title_number(self) -> Optional[int]:
        """Title number of a title node, from its 'title' field or numeric identifier."""
        title = self.extra.get('title')
        if _is_int(title):
            return title
        if self.identifier.isdigit():
            return int(self.identifier)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StructureNode':
        """
        Build a structure tree from parsed eCFR structure JSON.

        Args:
            data: Root node dictionary

        Returns:
            Root StructureNode

        Raises:
            ValueError: If any node is missing 'type'/'identifier' or is mistyped
        """
        return _build_tree(data, cls._from_raw, "Structure node")

    @classmethod
    def _from_raw(cls, raw: Dict[str, Any], children: Tuple['StructureNode', ...]) -> 'StructureNode':
        for key in ('type', 'identifier'):
            if raw.get(key) is None:
                raise ValueError(f"Structure node missing required field '{key}'")

        identifier = raw['identifier']
        if _is_int(identifier):
            identifier = str(identifier)

        return cls(
            type=raw['type'],
            identifier=identifier,
            label=_optional_str(raw, 'label', "Structure node"),
            content=_optional_str(raw, 'content', "Structure node"),
            text=_optional_str(raw, 'text', "Structure node"),
            children=children,
            extra={k: v for k, v in raw.items() if k not in _STRUCTURE_FIELDS}
        )

    def _own_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'type': self.type, 'identifier': self.identifier}
        for key in ('label', 'content', 'text'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class CfrReference:
    """A pointer from an agency to a CFR title and optional chapter or part."""
    title: int
    chapter: Optional[str] = None
    part: Optional[str] = None

    def __post_init__(self):
        """Validate reference data after initialization."""
        if not _is_int(self.title):
            raise ValueError("CFR reference title must be an integer")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CfrReference':
        if not isinstance(data, dict):
            raise ValueError("CFR reference must be an object")
        if 'title' not in data:
            raise ValueError("CFR reference missing required field 'title'")

        chapter = data.get('chapter')
        part = data.get('part')
        return cls(
            title=data['title'],
            chapter=str(chapter) if chapter is not None else None,
            part=str(part) if part is not None else None
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'title': self.title}
        if self.chapter is not None:
            result['chapter'] = self.chapter
        if self.part is not None:
            result['part'] = self.part
        return result


@dataclass(frozen=True)
class AgencyNode(_TreeNode):
    """
    A federal agency with its CFR references and sub-agencies.

    Equality and repr cover the agency's own fields, not its sub-agencies.
    """
    name: str
    slug: str
    short_name: Optional[str] = None
    display_name: Optional[str] = None
    sortable_name: Optional[str] = None
    parent_slug: Optional[str] = None
    url: Optional[str] = None
    cfr_references: Tuple[CfrReference, ...] = ()
    children: Tuple['AgencyNode', ...] = field(default=(), compare=False, repr=False)

    def __post_init__(self):
        """Validate agency data after initialization."""
        if not isinstance(self.name, str) or not isinstance(self.slug, str):
            raise ValueError("Agency name and slug must be strings")
        if not self.name or not self.slug:
            raise ValueError("Agency name and slug are required")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AgencyNode':
        """Build an agency tree from one entry of the eCFR agencies JSON."""
        return _build_tree(data, cls._from_raw, "Agency")

    @classmethod
    def _from_raw(cls, raw: Dict[str, Any], children: Tuple['AgencyNode', ...]) -> 'AgencyNode':
        references = raw.get('cfr_references')
        if references is None:
            references = []
        elif not isinstance(references, list):
            raise ValueError("Agency field 'cfr_references' must be a list")

        return cls(
            name=raw.get('name', ''),
            slug=raw.get('slug', ''),
            short_name=_optional_str(raw, 'short_name', "Agency"),
            display_name=_optional_str(raw, 'display_name', "Agency"),
            sortable_name=_optional_str(raw, 'sortable_name', "Agency"),
            parent_slug=_optional_str(raw, 'parent_slug', "Agency"),
            url=_optional_str(raw, 'url', "Agency"),
            cfr_references=tuple(CfrReference.from_dict(ref) for ref in references),
            children=children
        )

    def _own_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name, 'slug': self.slug}
        for key in ('short_name', 'display_name', 'sortable_name', 'parent_slug', 'url'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data['cfr_references'] = [reference.to_dict() for reference in self.cfr_references]
        data['children'] = []
        return data


@dataclass(frozen=True)
class TitleEntry:
    """One CFR title from the titles summary registry."""
    number: int
    name: str
    reserved: bool = False
    amendment_date: Optional[str] = None
    issue_date: Optional[str] = None
    status: Optional[str] = None

    def __post_init__(self):
        """Validate title data after initialization."""
        if not _is_int(self.number):
            raise ValueError("Title number must be an integer")
        if not isinstance(self.name, str):
            raise ValueError("Title name must be a string")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TitleEntry':
        """
        Build a title entry, accepting the live eCFR field names
        'latest_amended_on' and 'latest_issue_date' as aliases.
        """
        if not isinstance(data, dict):
            raise ValueError("Title entry must be an object")
        if 'number' not in data:
            raise ValueError("Title entry missing required field 'number'")

        return cls(
            number=data['number'],
            name=data.get('name') or '',
            reserved=bool(data.get('reserved', False)),
            amendment_date=data.get('amendment_date') or data.get('latest_amended_on'),
            issue_date=data.get('issue_date') or data.get('latest_issue_date'),
            status=data.get('status')
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {'number': self.number, 'name': self.name, 'reserved': self.reserved}
        for key in ('amendment_date', 'issue_date', 'status'):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


# Analysis results


@dataclass(frozen=True)
class ElementWordCount:
    """Word and character count of one structure node's own content."""
    identifier: str
    type: str
    word_count: int
    character_count: int
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'identifier': self.identifier, 'type': self.type}
        if self.label is not None:
            result['label'] = self.label
        result['wordCount'] = self.word_count
        result['characterCount'] = self.character_count
        return result


@dataclass(frozen=True)
class HierarchyWordCount:
    """Own-content word totals for every node of one hierarchy level."""
    type: str
    count: int
    total_words: int
    average_words: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'count': self.count,
            'totalWords': self.total_words,
            'averageWords': self.average_words
        }


@dataclass(frozen=True)
class WordCountResult:
    """Complete word count analysis of one title structure."""
    total_words: int
    total_characters: int
    total_elements: int
    by_hierarchy: Tuple[HierarchyWordCount, ...]
    top_elements: Tuple[ElementWordCount, ...]
    sections: Tuple[ElementWordCount, ...]
    title: Optional[int] = None
    title_name: Optional[str] = None

    def with_title_name(self, title_name: str) -> 'WordCountResult':
        """Return a copy carrying the given display name."""
        return replace(self, title_name=title_name)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.title is not None:
            result['title'] = self.title
        if self.title_name is not None:
            result['titleName'] = self.title_name
        result.update({
            'totalWords': self.total_words,
            'totalCharacters': self.total_characters,
            'totalElements': self.total_elements,
            'byHierarchy': [h.to_dict() for h in self.by_hierarchy],
            'topElements': [e.to_dict() for e in self.top_elements],
            'sections': [s.to_dict() for s in self.sections]
        })
        return result


@dataclass(frozen=True)
class WordCountSummary:
    """Rollup over a batch of word count results."""
    title_count: int
    total_words: int
    total_elements: int
    average_words_per_title: float
    longest_title: WordCountResult
    shortest_title: WordCountResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            'titleCount': self.title_count,
            'totalWords': self.total_words,
            'totalElements': self.total_elements,
            'averageWordsPerTitle': self.average_words_per_title,
            'longestTitle': self.longest_title.to_dict(),
            'shortestTitle': self.shortest_title.to_dict()
        }


@dataclass(frozen=True)
class AgencyStat:
    """CFR reference statistics for a single agency node."""
    name: str
    slug: str
    title_count: int
    chapter_count: int
    part_count: int
    titles: Tuple[int, ...]
    short_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'name': self.name, 'slug': self.slug}
        if self.short_name is not None:
            result['shortName'] = self.short_name
        result.update({
            'titleCount': self.title_count,
            'chapterCount': self.chapter_count,
            'partCount': self.part_count,
            'titles': list(self.titles)
        })
        return result


@dataclass(frozen=True)
class TitleDistribution:
    """Agencies referencing one CFR title."""
    title_number: int
    title_name: str
    agency_count: int
    agencies: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'titleNumber': self.title_number,
            'titleName': self.title_name,
            'agencyCount': self.agency_count,
            'agencies': list(self.agencies)
        }


@dataclass(frozen=True)
class AgencyStatsResult:
    """Agency reference statistics across an agency forest."""
    total_agencies: int
    agencies_with_references: int
    total_titles: int
    average_titles_per_agency: float
    top_agencies: Tuple[AgencyStat, ...]
    title_distribution: Tuple[TitleDistribution, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalAgencies': self.total_agencies,
            'agenciesWithReferences': self.agencies_with_references,
            'totalTitles': self.total_titles,
            'averageTitlesPerAgency': self.average_titles_per_agency,
            'topAgencies': [a.to_dict() for a in self.top_agencies],
            'titleDistribution': [d.to_dict() for d in self.title_distribution]
        }


# Fixture bookkeeping


@dataclass
class DownloadRecord:
    """One entry in the fixture download history."""
    type: DownloadType
    timestamp: str
    status: DownloadStatus
    title: Optional[int] = None
    date: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DownloadRecord':
        return cls(
            type=DownloadType(data['type']),
            timestamp=data['timestamp'],
            status=DownloadStatus(data['status']),
            title=data.get('title'),
            date=data.get('date'),
            error=data.get('error')
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': self.type.value,
            'timestamp': self.timestamp,
            'status': self.status.value
        }
        for key in ('title', 'date', 'error'):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class FixtureMetadata:
    """Global fixture metadata with the download history."""
    last_updated: str
    downloads: List[DownloadRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FixtureMetadata':
        return cls(
            last_updated=data['lastUpdated'],
            downloads=[DownloadRecord.from_dict(d) for d in data.get('downloads', [])]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lastUpdated': self.last_updated,
            'downloads': [d.to_dict() for d in self.downloads]
        }


@dataclass
class TitleMetadata:
    """Per-title fixture metadata naming the files saved for that title."""
    title: int
    download_date: str
    data_date: str
    files: Dict[str, str] = field(default_factory=dict)

    @property
    def structure_file(self) -> Optional[str]:
        return self.files.get('structure')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TitleMetadata':
        files = data.get('files') or {}
        if not isinstance(files, dict):
            raise ValueError("Title metadata field 'files' must be an object")
        return cls(
            title=data['title'],
            download_date=data['downloadDate'],
            data_date=data['dataDate'],
            files={k: v for k, v in files.items() if v}
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'downloadDate': self.download_date,
            'dataDate': self.data_date,
            'files': dict(self.files)
        }
