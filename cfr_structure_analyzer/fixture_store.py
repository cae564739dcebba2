"""
On-disk fixture storage.

Fixtures are plain JSON/XML files under a single directory:

    metadata.json                        download history
    agencies/agencies.json               agency forest
    titles/summary.json                  titles summary
    titles/title-{n}/metadata.json       files saved for title n
    titles/title-{n}/structure-{date}.json
    titles/title-{n}/full-{date}.xml
    titles/title-{n}/versions.json
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from .config import Config
from .models import DownloadRecord, FixtureMetadata


logger = logging.getLogger(__name__)

METADATA_FILE = 'metadata.json'
AGENCIES_FILE = ('agencies', 'agencies.json')
TITLES_SUMMARY_FILE = ('titles', 'summary.json')


def title_directory_name(title: int) -> str:
    return f"title-{title}"


def structure_file_name(date: str) -> str:
    return f"structure-{date}.json"


def full_file_name(date: str) -> str:
    return f"full-{date}.xml"


VERSIONS_FILE_NAME = 'versions.json'


class FixtureStore:
    """Writes fixture files and keeps the download history up to date."""

    def __init__(self, fixtures_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the fixture store.

        Args:
            fixtures_dir: Root fixtures directory (default from config)
        """
        self.fixtures_dir = Path(fixtures_dir) if fixtures_dir else Config.get_fixtures_dir()
        logger.debug(f"Fixture store rooted at {self.fixtures_dir}")

    def path(self, *parts: str) -> Path:
        """Get the path of a fixture file relative to the fixtures directory."""
        return self.fixtures_dir.joinpath(*parts)

    def title_path(self, title: int, *parts: str) -> Path:
        """Get the path of a file inside a title's fixture directory."""
        return self.path('titles', title_directory_name(title), *parts)

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def write_json(self, path: Path, data: Any) -> Path:
        """
        Write JSON data to a file with pretty formatting.

        Args:
            path: Destination file
            data: JSON-serializable data

        Returns:
            The path written
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.debug(f"Wrote {path}")
        return path

    def write_text(self, path: Path, content: str) -> Path:
        """Write text (e.g. XML) content to a file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.debug(f"Wrote {path}")
        return path

    def read_json(self, path: Path) -> Any:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def read_metadata(self) -> FixtureMetadata:
        """
        Read the global fixture metadata.

        A missing file yields empty metadata; an unreadable one is logged and
        replaced by empty metadata so new downloads can still be recorded.
        """
        path = self.path(METADATA_FILE)
        if not self.exists(path):
            return FixtureMetadata(last_updated=datetime.now().isoformat())

        try:
            return FixtureMetadata.from_dict(self.read_json(path))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Fixture metadata at {path} is unreadable, starting fresh: {e}")
            return FixtureMetadata(last_updated=datetime.now().isoformat())

    def update_metadata(self, record: DownloadRecord) -> FixtureMetadata:
        """
        Append a download record to the global fixture metadata.

        Args:
            record: Download record to add

        Returns:
            The updated metadata
        """
        metadata = self.read_metadata()
        metadata.downloads.append(record)
        metadata.last_updated = datetime.now().isoformat()

        self.write_json(self.path(METADATA_FILE), metadata.to_dict())
        logger.info(f"Recorded {record.type.value} download with status {record.status.value}")
        return metadata
