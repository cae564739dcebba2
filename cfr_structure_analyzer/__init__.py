"""
CFR Structure Analyzer

A tool for analyzing the structure of eCFR titles and the agencies that
reference them: word counts per hierarchy level and agency reference
statistics, computed from fixtures downloaded from the eCFR API.
"""

__version__ = "1.0.0"
__author__ = "CFR Structure Analyzer Team"
__description__ = "Structural analysis of eCFR titles and agencies"

from .models import (
    AgencyNode,
    AgencyStat,
    AgencyStatsResult,
    CfrReference,
    StructureNode,
    TitleEntry,
    WordCountResult,
    WordCountSummary,
)
from .word_count import analyze_tree
from .agency_stats import analyze_forest
from .summary import summarize
from .data_loader import FixtureLoader
from .api_client import ECFRClient
from .error_handler import StructureAnalyzerError, EmptyBatchError, ECFRAPIError
from .report_generator import ReportGenerator
from .config import Config

__all__ = [
    'AgencyNode',
    'AgencyStat',
    'AgencyStatsResult',
    'CfrReference',
    'StructureNode',
    'TitleEntry',
    'WordCountResult',
    'WordCountSummary',
    'analyze_tree',
    'analyze_forest',
    'summarize',
    'FixtureLoader',
    'ECFRClient',
    'StructureAnalyzerError',
    'EmptyBatchError',
    'ECFRAPIError',
    'ReportGenerator',
    'Config'
]
