"""
Fixture downloader.

Fetches data from the eCFR API and persists it through the fixture store,
recording the outcome of every download in the fixture metadata.
"""

import logging
from datetime import date as date_type, datetime
from typing import Any, Callable, Dict, Optional

from .api_client import ECFRClient
from .error_handler import DownloadError, ErrorCollector, StructureAnalyzerError, log_execution_time
from .fixture_store import (
    AGENCIES_FILE,
    METADATA_FILE,
    TITLES_SUMMARY_FILE,
    VERSIONS_FILE_NAME,
    FixtureStore,
    full_file_name,
    structure_file_name,
)
from .models import DownloadRecord, DownloadStatus, DownloadType, TitleMetadata


logger = logging.getLogger(__name__)

# Structure, full XML and versions are fetched for every title
TITLE_DOWNLOAD_STEPS = 3


def _status_for(error_count: int) -> DownloadStatus:
    if error_count == 0:
        return DownloadStatus.SUCCESS
    if error_count < TITLE_DOWNLOAD_STEPS:
        return DownloadStatus.PARTIAL
    return DownloadStatus.FAILED


def _error_message(error: Exception) -> str:
    return getattr(error, 'message', None) or str(error)


class FixtureDownloader:
    """Downloads agencies, the titles summary and individual titles."""

    def __init__(self, client: ECFRClient, store: FixtureStore):
        """
        Initialize the downloader.

        Args:
            client: eCFR API client
            store: Fixture store to write to
        """
        self.client = client
        self.store = store

    def _record(self, download_type: DownloadType, status: DownloadStatus,
                title: Optional[int] = None, date: Optional[str] = None,
                error: Optional[str] = None) -> DownloadRecord:
        record = DownloadRecord(
            type=download_type,
            timestamp=datetime.now().isoformat(),
            status=status,
            title=title,
            date=date,
            error=error
        )
        self.store.update_metadata(record)
        return record

    def _download_list(self, download_type: DownloadType, fetch: Callable[[], Any],
                       parts: tuple, description: str) -> DownloadRecord:
        try:
            data = fetch()
            path = self.store.write_json(self.store.path(*parts), data)
            logger.info(f"Saved {len(data)} {description} to {path}")
        except (StructureAnalyzerError, OSError) as e:
            message = _error_message(e)
            logger.error(f"Failed to download {description}: {message}")
            self._record(download_type, DownloadStatus.FAILED, error=message)
            raise DownloadError(f"Failed to download {description}: {message}", cause=e)

        return self._record(download_type, DownloadStatus.SUCCESS)

    @log_execution_time
    def download_agencies(self) -> DownloadRecord:
        """
        Download the agency forest.

        Returns:
            The success record added to the fixture metadata

        Raises:
            DownloadError: If fetching or saving fails
        """
        return self._download_list(
            DownloadType.AGENCIES, self.client.fetch_agencies, AGENCIES_FILE, "agencies"
        )

    @log_execution_time
    def download_titles_summary(self) -> DownloadRecord:
        """
        Download the titles summary.

        Returns:
            The success record added to the fixture metadata

        Raises:
            DownloadError: If fetching or saving fails
        """
        return self._download_list(
            DownloadType.TITLES_SUMMARY, self.client.fetch_titles_summary,
            TITLES_SUMMARY_FILE, "titles"
        )

    @log_execution_time
    def download_title(self, title: int, date: Optional[str] = None,
                       force: bool = False) -> Optional[DownloadRecord]:
        """
        Download the structure, full XML and version history of a title.

        Each file is fetched independently; a failure in one does not stop the
        others. The title metadata lists only the files that were saved.

        Args:
            title: Title number
            date: Data date in YYYY-MM-DD format (default today)
            force: Re-download even if the title already exists

        Returns:
            The record added to the fixture metadata, or None if the title was
            already downloaded and force is False

        Raises:
            DownloadError: If every file failed or the metadata could not be saved
        """
        date = date or date_type.today().isoformat()
        metadata_path = self.store.title_path(title, METADATA_FILE)

        if not force and self.store.exists(metadata_path):
            logger.warning(f"Title {title} already exists. Use --force to re-download.")
            return None

        logger.info(f"Downloading Title {title} ({date})")
        collector = ErrorCollector()
        files: Dict[str, str] = {}

        steps = [
            ('structure', "structure", structure_file_name(date),
             lambda: self.client.fetch_title_structure(title, date), self.store.write_json),
            ('full', "XML", full_file_name(date),
             lambda: self.client.fetch_title_full(title, date), self.store.write_text),
            ('versions', "versions", VERSIONS_FILE_NAME,
             lambda: self.client.fetch_title_versions(title), self.store.write_json),
        ]

        for key, description, file_name, fetch, write in steps:
            try:
                write(self.store.title_path(title, file_name), fetch())
                files[key] = file_name
            except (StructureAnalyzerError, OSError) as e:
                collector.add_error(e, f"Failed to fetch {description}")

        try:
            title_metadata = TitleMetadata(
                title=title,
                download_date=datetime.now().isoformat(),
                data_date=date,
                files=files
            )
            self.store.write_json(metadata_path, title_metadata.to_dict())
        except OSError as e:
            logger.error(f"Failed to save metadata for Title {title}: {e}")
            self._record(DownloadType.TITLE, DownloadStatus.FAILED, title=title, date=date, error=str(e))
            raise DownloadError(f"Failed to download title {title}: {e}", cause=e)

        status = _status_for(collector.error_count)
        error = "; ".join(collector.get_messages()) if collector.has_errors() else None
        record = self._record(DownloadType.TITLE, status, title=title, date=date, error=error)

        if status == DownloadStatus.FAILED:
            raise DownloadError(f"Title {title} download failed: {error}")

        if status == DownloadStatus.PARTIAL:
            logger.warning(f"Title {title} partially downloaded ({collector.error_count} errors)")
        else:
            logger.info(f"Title {title} downloaded successfully")
        return record
