"""
Fixture loader for parsing persisted eCFR data into typed models.

This module reads the JSON fixtures written by the downloader, converts them
into the tree models consumed by the analysis engine and rejects malformed
shapes before they reach it. Missing files are reported separately from
unreadable ones so callers can distinguish "not found" from "error".
"""

import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar, Union

from .error_handler import FixtureLoadError, FixtureNotFoundError
from .fixture_store import (
    AGENCIES_FILE,
    METADATA_FILE,
    TITLES_SUMMARY_FILE,
    FixtureStore,
)
from .models import (
    AgencyNode,
    FixtureMetadata,
    StructureNode,
    TitleEntry,
    TitleMetadata,
)


logger = logging.getLogger(__name__)

T = TypeVar('T')


def _unwrap_list(data: Any, key: str) -> List[Any]:
    """Accept either a bare list or an object wrapping the list under key."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        items = data.get(key, [])
        if isinstance(items, list):
            return items
    raise ValueError(f"Expected a list or an object with a '{key}' list")


class FixtureLoader:
    """Loads agencies, the titles summary and title structures from fixtures."""

    def __init__(self, fixtures_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the fixture loader.

        Args:
            fixtures_dir: Root fixtures directory (default from config)
        """
        self.store = FixtureStore(fixtures_dir)

    @property
    def fixtures_dir(self) -> Path:
        return self.store.fixtures_dir

    def _read_json(self, path: Path, description: str) -> Any:
        if not self.store.exists(path):
            raise FixtureNotFoundError(f"Failed to load {description}: {path} not found")

        try:
            return self.store.read_json(path)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading {path}: {e}")
            raise FixtureLoadError(f"Failed to load {description}: {e}", cause=e)

    def _parse(self, description: str, parse: Callable[[], T]) -> T:
        try:
            return parse()
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Invalid {description}: {e}")
            raise FixtureLoadError(f"Failed to load {description}: {e}", cause=e)

    def load_agencies(self) -> List[AgencyNode]:
        """
        Load the agency forest.

        Returns:
            List of top-level AgencyNode objects

        Raises:
            FixtureNotFoundError: If the agencies fixture does not exist
            FixtureLoadError: If the fixture is not valid agency data
        """
        description = "agencies fixture"
        data = self._read_json(self.store.path(*AGENCIES_FILE), description)
        agencies = self._parse(
            description,
            lambda: [AgencyNode.from_dict(item) for item in _unwrap_list(data, 'agencies')]
        )

        logger.info(f"Loaded {len(agencies)} top-level agencies")
        return agencies

    def load_titles_summary(self) -> List[TitleEntry]:
        """
        Load the titles summary registry.

        Returns:
            List of TitleEntry objects
        """
        description = "titles summary fixture"
        data = self._read_json(self.store.path(*TITLES_SUMMARY_FILE), description)
        titles = self._parse(
            description,
            lambda: [TitleEntry.from_dict(item) for item in _unwrap_list(data, 'titles')]
        )

        logger.info(f"Loaded {len(titles)} titles from summary")
        return titles

    def load_title_metadata(self, title_number: int) -> TitleMetadata:
        """
        Load the metadata for a specific title.

        Args:
            title_number: Title number (e.g., 17)

        Returns:
            TitleMetadata for the title
        """
        description = f"title {title_number} metadata"
        data = self._read_json(self.store.title_path(title_number, METADATA_FILE), description)
        return self._parse(description, lambda: TitleMetadata.from_dict(data))

    def load_title_structure(self, title_number: int) -> StructureNode:
        """
        Load the structure of a specific title.

        The structure file is located through the title's metadata.

        Args:
            title_number: Title number (e.g., 17)

        Returns:
            Root StructureNode of the title

        Raises:
            FixtureNotFoundError: If the title was never downloaded
            FixtureLoadError: If no structure was saved or it is malformed
        """
        description = f"title {title_number} structure"
        try:
            metadata = self.load_title_metadata(title_number)
        except FixtureNotFoundError as e:
            raise FixtureNotFoundError(f"Failed to load {description}: {e.message}", cause=e)

        if not metadata.structure_file:
            raise FixtureLoadError(
                f"Failed to load {description}: no structure file found for title {title_number}"
            )

        data = self._read_json(self.store.title_path(title_number, metadata.structure_file), description)
        structure = self._parse(description, lambda: StructureNode.from_dict(data))

        logger.info(f"Loaded structure for title {title_number}")
        return structure

    def load_fixture_metadata(self) -> FixtureMetadata:
        """Load the global fixture metadata with the download history."""
        description = "fixture metadata"
        data = self._read_json(self.store.path(METADATA_FILE), description)
        return self._parse(description, lambda: FixtureMetadata.from_dict(data))

    def title_fixture_exists(self, title_number: int) -> bool:
        """
        Check if a title's fixture exists.

        Args:
            title_number: Title number to check

        Returns:
            True if the title's metadata can be loaded
        """
        try:
            self.load_title_metadata(title_number)
            return True
        except FixtureLoadError:
            return False

    def available_titles(self) -> List[int]:
        """
        List the titles that have been downloaded.

        Returns:
            Sorted title numbers with a metadata file
        """
        titles = []
        for metadata_path in self.store.path('titles').glob(f"title-*/{METADATA_FILE}"):
            suffix = metadata_path.parent.name[len('title-'):]
            if suffix.isdigit():
                titles.append(int(suffix))
        return sorted(titles)

    def title_name(self, title_number: int) -> Optional[str]:
        """
        Look up a title's name in the titles summary.

        Returns:
            The title name, or None if the summary is unavailable or lacks it
        """
        try:
            titles = self.load_titles_summary()
        except FixtureLoadError as e:
            logger.debug(f"Titles summary unavailable for title name lookup: {e}")
            return None

        for title in titles:
            if title.number == title_number:
                return title.name or None
        return None
