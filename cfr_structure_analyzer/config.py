"""
Configuration settings for the CFR Structure Analyzer.

This module handles configuration from environment variables (optionally
loaded from a local .env file) and provides default values for the
application.
"""

import os
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Configuration class for the CFR Structure Analyzer."""

    # eCFR API settings
    ECFR_BASE_URL: str = os.getenv('ECFR_BASE_URL', 'https://www.ecfr.gov')
    ECFR_RATE_LIMIT: float = float(os.getenv('ECFR_RATE_LIMIT', '1.0'))

    # Request settings (full title XML can run to hundreds of megabytes)
    REQUEST_TIMEOUT: int = int(os.getenv('REQUEST_TIMEOUT', '120'))

    # Retry settings
    MAX_RETRY_ATTEMPTS: int = int(os.getenv('CSA_MAX_RETRY_ATTEMPTS', '3'))
    RETRY_BASE_DELAY: float = float(os.getenv('CSA_RETRY_BASE_DELAY', '1.0'))
    RETRY_MAX_DELAY: float = float(os.getenv('CSA_RETRY_MAX_DELAY', '10.0'))
    RETRY_BACKOFF_FACTOR: float = float(os.getenv('CSA_RETRY_BACKOFF_FACTOR', '2.0'))

    # Storage settings
    FIXTURES_DIRECTORY: str = os.getenv('CSA_FIXTURES_DIR', './fixtures')
    OUTPUT_DIRECTORY: str = os.getenv('CSA_OUTPUT_DIR', './results')
    DEFAULT_OUTPUT_FORMATS: list = ['json']

    # CFR title numbers accepted by the CLI and dashboard
    MIN_TITLE_NUMBER: int = 1
    MAX_TITLE_NUMBER: int = 50

    # Logging settings
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE: str = os.getenv('CSA_LOG_FILE', 'cfr_structure_analyzer.log')

    @classmethod
    def setup_logging(cls, verbose: bool = False, quiet: bool = False,
                      log_file: Optional[str] = None) -> None:
        """Set up logging configuration."""
        level = logging.DEBUG if verbose else getattr(logging, cls.LOG_LEVEL.upper())
        if quiet:
            level = logging.WARNING

        log_path = Path(log_file or cls.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handlers = [logging.FileHandler(log_path)]
        if not quiet:
            handlers.append(logging.StreamHandler())

        logging.basicConfig(
            level=level,
            format=cls.LOG_FORMAT,
            handlers=handlers
        )

        # Reduce noise from external libraries
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('requests').setLevel(logging.WARNING)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration settings."""
        if cls.ECFR_RATE_LIMIT <= 0:
            raise ValueError("API rate limit must be positive")

        if cls.REQUEST_TIMEOUT <= 0:
            raise ValueError("Request timeout must be positive")

        if cls.MAX_RETRY_ATTEMPTS < 1:
            raise ValueError("Retry attempts must be at least 1")

        if cls.RETRY_BASE_DELAY < 0:
            raise ValueError("Retry delay cannot be negative")

        if cls.RETRY_MAX_DELAY < cls.RETRY_BASE_DELAY:
            raise ValueError("Maximum retry delay cannot be below the initial delay")

        if cls.RETRY_BACKOFF_FACTOR < 1:
            raise ValueError("Retry backoff factor must be at least 1")

        if not cls.ECFR_BASE_URL.startswith(('http://', 'https://')):
            raise ValueError("API base URL must be a valid HTTP/HTTPS URL")

    @classmethod
    def get_fixtures_dir(cls) -> Path:
        """Get fixtures directory as Path object."""
        return Path(cls.FIXTURES_DIRECTORY)

    @classmethod
    def get_output_dir(cls) -> Path:
        """Get output directory as Path object, creating if necessary."""
        output_dir = Path(cls.OUTPUT_DIRECTORY)
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir
