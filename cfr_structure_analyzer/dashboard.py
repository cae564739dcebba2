"""
Streamlit dashboard for the CFR Structure Analyzer.

Shows word count and agency statistics computed from downloaded fixtures.
Run with ``cfr-structure-analyzer dashboard`` or
``streamlit run cfr_structure_analyzer/dashboard.py -- --fixtures-dir ./fixtures``.
"""

import argparse
import sys
from typing import List, Optional, Sequence

import pandas as pd
import plotly.express as px
import streamlit as st

from cfr_structure_analyzer.agency_stats import analyze_forest
from cfr_structure_analyzer.config import Config
from cfr_structure_analyzer.data_loader import FixtureLoader
from cfr_structure_analyzer.error_handler import FixtureLoadError, FixtureNotFoundError
from cfr_structure_analyzer.models import (
    AgencyStat,
    AgencyStatsResult,
    ElementWordCount,
    TitleDistribution,
    WordCountResult,
)
from cfr_structure_analyzer.summary import summarize
from cfr_structure_analyzer.word_count import analyze_tree


HIERARCHY_COLUMNS = ["Type", "Elements", "Total Words", "Average Words"]
ELEMENT_COLUMNS = ["Identifier", "Type", "Label", "Words", "Characters"]
TITLE_COLUMNS = ["Title", "Name", "Words", "Characters", "Elements"]
AGENCY_COLUMNS = ["Agency", "Slug", "Short Name", "Titles", "Chapters", "Parts", "Title Numbers"]
DISTRIBUTION_COLUMNS = ["Title", "Name", "Agencies"]


# Table builders

def hierarchy_frame(result: WordCountResult) -> pd.DataFrame:
    """Word totals per hierarchy level."""
    rows = [
        {
            "Type": level.type,
            "Elements": level.count,
            "Total Words": level.total_words,
            "Average Words": round(level.average_words, 1)
        }
        for level in result.by_hierarchy
    ]
    return pd.DataFrame(rows, columns=HIERARCHY_COLUMNS)


def elements_frame(elements: Sequence[ElementWordCount]) -> pd.DataFrame:
    """One row per element, in the given order."""
    rows = [
        {
            "Identifier": element.identifier,
            "Type": element.type,
            "Label": element.label or "",
            "Words": element.word_count,
            "Characters": element.character_count
        }
        for element in elements
    ]
    return pd.DataFrame(rows, columns=ELEMENT_COLUMNS)


def titles_frame(results: Sequence[WordCountResult]) -> pd.DataFrame:
    rows = [
        {
            "Title": result.title,
            "Name": result.title_name or "",
            "Words": result.total_words,
            "Characters": result.total_characters,
            "Elements": result.total_elements
        }
        for result in results
    ]
    return pd.DataFrame(rows, columns=TITLE_COLUMNS)


def agencies_frame(stats: Sequence[AgencyStat]) -> pd.DataFrame:
    rows = [
        {
            "Agency": stat.name,
            "Slug": stat.slug,
            "Short Name": stat.short_name or "",
            "Titles": stat.title_count,
            "Chapters": stat.chapter_count,
            "Parts": stat.part_count,
            "Title Numbers": ", ".join(str(t) for t in stat.titles)
        }
        for stat in stats
    ]
    return pd.DataFrame(rows, columns=AGENCY_COLUMNS)


def distribution_frame(distribution: Sequence[TitleDistribution]) -> pd.DataFrame:
    rows = [
        {
            "Title": entry.title_number,
            "Name": entry.title_name,
            "Agencies": entry.agency_count
        }
        for entry in distribution
    ]
    return pd.DataFrame(rows, columns=DISTRIBUTION_COLUMNS)


# Cached loaders

@st.cache_data
def load_available_titles(fixtures_dir: str) -> List[int]:
    return FixtureLoader(fixtures_dir).available_titles()


@st.cache_data
def load_word_count(fixtures_dir: str, title_number: int) -> WordCountResult:
    """Analyze a downloaded title, named from the titles summary when available."""
    loader = FixtureLoader(fixtures_dir)
    result = analyze_tree(loader.load_title_structure(title_number))
    title_name = loader.title_name(title_number)
    return result.with_title_name(title_name) if title_name else result


@st.cache_data
def load_agency_stats(fixtures_dir: str) -> AgencyStatsResult:
    loader = FixtureLoader(fixtures_dir)
    try:
        registry = loader.load_titles_summary()
    except FixtureNotFoundError:
        registry = None
    return analyze_forest(loader.load_agencies(), registry)


def parse_dashboard_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the arguments passed after '--' to 'streamlit run'."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument('--fixtures-dir', default=Config.FIXTURES_DIRECTORY)
    args, _ = parser.parse_known_args(argv if argv is not None else sys.argv[1:])
    return args


# Views

def show_overview(fixtures_dir: str):
    """Summary metrics and a per-title table over all downloaded titles."""
    st.header("Title Overview")

    titles = load_available_titles(fixtures_dir)
    if not titles:
        st.info("No titles downloaded yet. Run: cfr-structure-analyzer download-title 17")
        return

    results = [load_word_count(fixtures_dir, title) for title in titles]
    summary = summarize(results)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric(label="Titles", value=f"{summary.title_count:,}")
    with col2:
        st.metric(label="Total Words", value=f"{summary.total_words:,}")
    with col3:
        st.metric(label="Total Elements", value=f"{summary.total_elements:,}")
    with col4:
        st.metric(label="Avg Words per Title", value=f"{summary.average_words_per_title:,.0f}")

    st.write(f"**Longest:** Title {summary.longest_title.title} ({summary.longest_title.total_words:,} words)")
    st.write(f"**Shortest:** Title {summary.shortest_title.title} ({summary.shortest_title.total_words:,} words)")

    st.subheader("Titles")
    st.dataframe(titles_frame(results), use_container_width=True)


def show_word_count(fixtures_dir: str):
    """Word count breakdown for one title."""
    st.header("Word Count")

    titles = load_available_titles(fixtures_dir)
    if not titles:
        st.info("No titles downloaded yet. Run: cfr-structure-analyzer download-title 17")
        return

    title_number = st.selectbox("Title", titles, format_func=lambda n: f"Title {n}")
    result = load_word_count(fixtures_dir, title_number)

    if result.title_name:
        st.subheader(result.title_name)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric(label="Total Words", value=f"{result.total_words:,}")
    with col2:
        st.metric(label="Total Characters", value=f"{result.total_characters:,}")
    with col3:
        st.metric(label="Elements", value=f"{result.total_elements:,}")

    st.subheader("By Hierarchy Level")
    hierarchy = hierarchy_frame(result)
    st.dataframe(hierarchy, use_container_width=True)
    if not hierarchy.empty:
        fig = px.bar(
            hierarchy,
            x="Type",
            y="Total Words",
            title="Words by Hierarchy Level"
        )
        st.plotly_chart(fig, use_container_width=True)

    st.subheader("Top Elements")
    st.dataframe(elements_frame(result.top_elements), use_container_width=True)

    st.subheader(f"Sections ({len(result.sections):,})")
    st.dataframe(elements_frame(result.sections), use_container_width=True)


def show_agency_stats(fixtures_dir: str):
    """Agency reference metrics, top agencies and the title distribution."""
    st.header("Agency Statistics")

    result = load_agency_stats(fixtures_dir)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric(label="Top-level Agencies", value=f"{result.total_agencies:,}")
    with col2:
        st.metric(label="With CFR References", value=f"{result.agencies_with_references:,}")
    with col3:
        st.metric(label="CFR Titles", value=f"{result.total_titles:,}")
    with col4:
        st.metric(label="Avg Titles per Agency", value=f"{result.average_titles_per_agency:.2f}")

    st.subheader("Top Agencies by Title Count")
    st.dataframe(agencies_frame(result.top_agencies), use_container_width=True)

    distribution = distribution_frame(result.title_distribution)
    if not distribution.empty:
        st.subheader("Agencies per Title")
        fig = px.bar(
            distribution,
            x="Title",
            y="Agencies",
            hover_data=["Name"],
            title="Agencies Referencing Each CFR Title"
        )
        fig.update_layout(height=400)
        st.plotly_chart(fig, use_container_width=True)


def main():
    """Main Streamlit application."""
    st.set_page_config(
        page_title="CFR Structure Analyzer",
        page_icon="📊",
        layout="wide",
        initial_sidebar_state="expanded"
    )
    st.title("CFR Structure Analyzer")

    fixtures_dir = parse_dashboard_args().fixtures_dir
    st.sidebar.title("Navigation")
    st.sidebar.caption(f"Fixtures: {fixtures_dir}")
    page = st.sidebar.selectbox("Choose a page", ["Overview", "Word Count", "Agency Statistics"])

    try:
        if page == "Overview":
            show_overview(fixtures_dir)
        elif page == "Word Count":
            show_word_count(fixtures_dir)
        elif page == "Agency Statistics":
            show_agency_stats(fixtures_dir)
    except FixtureNotFoundError as e:
        st.warning(f"Fixture data not available: {e.message}")
    except FixtureLoadError as e:
        st.error(f"Error loading fixtures: {e.message}")


if __name__ == "__main__":
    main()
