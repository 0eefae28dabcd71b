"""Core pipeline logic: enrich the bad-drivers table with population density.

This module orchestrates the loading, cleaning and joining of two
datasets:

* The FiveThirtyEight "bad drivers" table, which provides fatal-collision
  statistics and car insurance figures per US state.
* A population-density table scraped from a reference web page, whose
  two-row header and footnoted cells need normalizing before use.

The primary entry point is :func:`run_pipeline`, which returns the
primary dataset (with a derived ``region`` column), the cleaned density
table and their inner join with a recomputed ``density`` column.
Coercion failures and unmatched join keys are counted and logged rather
than dropped silently.
"""

from __future__ import annotations

from .config import (
    AREA_COLUMN,
    BAD_DRIVERS_COLUMNS,
    BAD_DRIVERS_SOURCE,
    CATEGORY_COLUMN,
    DENSITY_COLUMN,
    DENSITY_SCALE,
    DENSITY_SOURCE,
    DENSITY_TABLE_KEYWORD,
    HEADER_ROWS,
    POPULATION_COLUMN,
)
from .fetch import fetch_tables, keyword_matcher, select_table
from .regions import add_region

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import logging
import re

import pandas as pd
import requests

# Module‑level logger
logger = logging.getLogger(__name__)


class HeaderError(ValueError):
    """Raised when header rows cannot produce one usable name per column."""


class JoinError(ValueError):
    """Raised when joining the primary and density tables leaves no rows."""


_FOOTNOTE_RE = re.compile(r"\[[^\]]*\]")
_DIGIT_RE = re.compile(r"\d")
_ALTERNATIVE_RE = re.compile(r"([a-z]+)/[a-z]+")
_NON_LETTER_RE = re.compile(r"[^a-z]+")

_PLACEHOLDER_RE = re.compile(r"<")
_CATEGORY_PUNCT_RE = re.compile(r"[^\w\s]|_")
_NUMERIC_PUNCT_RE = re.compile(r"[^\w.\-]|_")
_WS_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_columns(df: pd.DataFrame, required: List[str]) -> None:
    """Raise an error if the DataFrame lacks any of the required columns."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"Missing expected columns: {missing}")


def _clean_header_part(text: object) -> str:
    """Lowercase one header cell and reduce it to letters and underscores."""
    s = str(text or "").lower()
    s = _FOOTNOTE_RE.sub("", s)
    s = _DIGIT_RE.sub("", s)
    s = _ALTERNATIVE_RE.sub(r"\1", s)
    s = _NON_LETTER_RE.sub("_", s)
    return s.strip("_")


# ---------------------------------------------------------------------------
# Data loaders
# ---------------------------------------------------------------------------


def load_bad_drivers_raw(source: str | Path = BAD_DRIVERS_SOURCE) -> pd.DataFrame:
    """Load the bad-drivers CSV as published."""
    return pd.read_csv(source)


def prepare_bad_drivers(raw: pd.DataFrame) -> pd.DataFrame:
    """Rename the bad-drivers columns and attach the ``region`` column.

    The published CSV uses long descriptive headers, so columns are
    renamed by position to the short names in
    ``config.BAD_DRIVERS_COLUMNS``.

    Parameters
    ----------
    raw : pd.DataFrame
        The bad-drivers table as read from the CSV.

    Returns
    -------
    pd.DataFrame
        A copy with short column names, stripped state names and a
        categorical ``region`` column.
    """
    if len(raw.columns) != len(BAD_DRIVERS_COLUMNS):
        raise KeyError(
            f"Expected {len(BAD_DRIVERS_COLUMNS)} columns in bad-drivers data, "
            f"got {len(raw.columns)}: {list(raw.columns)}"
        )
    df = raw.copy()
    df.columns = BAD_DRIVERS_COLUMNS
    df[CATEGORY_COLUMN] = df[CATEGORY_COLUMN].astype("string").str.strip()
    for col in BAD_DRIVERS_COLUMNS[1:]:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype("Float64")
    return add_region(df)


# ---------------------------------------------------------------------------
# Header normalizer
# ---------------------------------------------------------------------------


def column_name_pairs(
    raw: pd.DataFrame, header_rows: int = HEADER_ROWS
) -> List[Tuple[str, str]]:
    """Return ``(row1_text, row2_text)`` for every column position.

    With a single header row the second element is always empty.
    """
    if header_rows not in (1, 2):
        raise ValueError(f"header_rows must be 1 or 2, got {header_rows}")
    if len(raw) < header_rows:
        raise HeaderError(
            f"Table has {len(raw)} row(s); cannot consume {header_rows} header row(s)."
        )
    first = raw.iloc[0].fillna("").astype(str).tolist()
    if header_rows == 2:
        second = raw.iloc[1].fillna("").astype(str).tolist()
    else:
        second = [""] * len(first)
    return list(zip(first, second))


def derive_column_names(
    raw: pd.DataFrame, header_rows: int = HEADER_ROWS
) -> List[str]:
    """Build one name per column from the header rows.

    Each header cell is lowercased; bracketed footnotes and digits are
    dropped; ``word/word`` alternatives keep their first word; remaining
    non-letters become underscores.  The row-1 and row-2 parts are then
    joined with an underscore, skipping empty parts, so
    ``("State/Territory1", "region")`` becomes ``"state_region"``.

    Parameters
    ----------
    raw : pd.DataFrame
        A raw scraped table whose first ``header_rows`` rows hold header text.
    header_rows : int
        Number of header rows to read (1 or 2).

    Returns
    -------
    List[str]
        Column names in position order.  Raises :class:`HeaderError` if a
        name comes out empty or two positions share a name.
    """
    names = []
    for top, bottom in column_name_pairs(raw, header_rows):
        parts = [_clean_header_part(top), _clean_header_part(bottom)]
        names.append("_".join(p for p in parts if p))

    empty = [i for i, name in enumerate(names) if not name]
    if empty:
        raise HeaderError(f"Header rows give no name for column position(s) {empty}.")
    dupes = sorted({name for name in names if names.count(name) > 1})
    if dupes:
        raise HeaderError(f"Header rows give duplicate column names: {dupes}")
    return names


def normalize_headers(
    raw: pd.DataFrame,
    header_rows: int = HEADER_ROWS,
    *,
    category_prefix: Optional[str] = CATEGORY_COLUMN,
) -> pd.DataFrame:
    """Name the columns of ``raw`` and drop the consumed header rows.

    The column named exactly ``category_prefix`` is preferred; otherwise
    the first column whose derived name starts with it is renamed to
    ``config.CATEGORY_COLUMN``.  A rename that would clash with an existing
    column raises :class:`HeaderError`.  Pass ``None`` to keep the derived
    names unchanged.  ``raw`` itself is left untouched.
    """
    names = derive_column_names(raw, header_rows)
    table = raw.iloc[header_rows:].copy()
    table.columns = names

    if category_prefix is not None:
        matches = [name for name in names if name.startswith(category_prefix)]
        if not matches:
            raise HeaderError(
                f"No column name starts with {category_prefix!r}: {names}"
            )
        source = category_prefix if category_prefix in matches else matches[0]
        if source != CATEGORY_COLUMN and CATEGORY_COLUMN in names:
            raise HeaderError(
                f"Renaming {source!r} to {CATEGORY_COLUMN!r} would duplicate "
                f"an existing column: {names}"
            )
        table = table.rename(columns={source: CATEGORY_COLUMN})

    return table.reset_index(drop=True)


# ---------------------------------------------------------------------------
# Value cleaner
# ---------------------------------------------------------------------------


@dataclass
class CleaningReport:
    """Per-column counts of cells that could not be used as numbers.

    ``failures`` counts cells holding text that did not parse; ``missing``
    counts cells that were blank (or pure placeholder) to begin with.
    """

    failures: Dict[str, int] = field(default_factory=dict)
    missing: Dict[str, int] = field(default_factory=dict)

    @property
    def total_failures(self) -> int:
        return sum(self.failures.values())


def clean_category_cell(value: object) -> object:
    """Cleaned key text, or ``pd.NA`` when nothing but noise is left."""
    s = "" if pd.isna(value) else str(value)
    s = _FOOTNOTE_RE.sub("", s)
    s = _PLACEHOLDER_RE.sub("", s)
    s = _CATEGORY_PUNCT_RE.sub("", s)
    s = _WS_RE.sub(" ", s).strip()
    return s if s else pd.NA


def clean_numeric_cell(value: object) -> str:
    s = "" if pd.isna(value) else str(value)
    s = _FOOTNOTE_RE.sub("", s)
    s = _PLACEHOLDER_RE.sub("", s)
    s = s.replace("−", "-")
    s = _NUMERIC_PUNCT_RE.sub("", s)
    # A bare dash or dot is a "no data" marker, not a number
    return "" if not s.strip("-.") else s


def clean_values(
    table: pd.DataFrame, category: str = CATEGORY_COLUMN
) -> Tuple[pd.DataFrame, CleaningReport]:
    """Strip punctuation from cells and coerce columns to their final types.

    Parameters
    ----------
    table : pd.DataFrame
        Output of :func:`normalize_headers`; every cell is text.
    category : str
        Name of the identifying column.  It becomes a ``category`` column;
        every other column becomes nullable ``Float64``.

    Returns
    -------
    Tuple[pd.DataFrame, CleaningReport]
        The cleaned copy and the per-column coercion counts.  Unparseable
        cells are ``pd.NA`` in the output.
    """
    ensure_columns(table, [category])
    df = table.copy()
    report = CleaningReport()

    df[category] = pd.Categorical(df[category].map(clean_category_cell))

    for col in df.columns:
        if col == category:
            continue
        text = df[col].map(clean_numeric_cell)
        values = pd.to_numeric(text, errors="coerce").astype("Float64")
        blank = text == ""
        report.missing[col] = int(blank.sum())
        report.failures[col] = int((~blank & values.isna()).sum())
        df[col] = values

    for col, n in report.failures.items():
        if n:
            logger.warning("Column %r: %d value(s) could not be parsed as numbers", col, n)
    return df, report


# ---------------------------------------------------------------------------
# Joiner and derived fields
# ---------------------------------------------------------------------------


@dataclass
class JoinReport:
    """Keys found on only one side of the join.

    ``primary_blank`` and ``other_blank`` count rows dropped before the
    join because their key was missing or blank.
    """

    matched: int = 0
    primary_only: List[str] = field(default_factory=list)
    other_only: List[str] = field(default_factory=list)
    primary_blank: int = 0
    other_blank: int = 0


def _keyed_rows(df: pd.DataFrame, key: str) -> Tuple[pd.DataFrame, int]:
    """Rows of ``df`` with a usable key (as plain strings) and the number dropped."""
    keys = df[key].astype("string").str.strip()
    keep = (keys.notna() & (keys != "")).fillna(False).astype(bool)
    out = df.loc[keep].copy()
    out[key] = keys[keep].astype(object)
    return out, int((~keep).sum())


def join_datasets(
    primary: pd.DataFrame,
    other: pd.DataFrame,
    *,
    key: str = CATEGORY_COLUMN,
) -> Tuple[pd.DataFrame, JoinReport]:
    """Inner-join two tables on an exact match of ``key``.

    Keys must be unique on both sides.  Columns of ``other`` that clash
    with ``primary`` get a ``_density`` suffix.  Raises :class:`JoinError`
    when no key matches.
    """
    ensure_columns(primary, [key])
    ensure_columns(other, [key])

    left, left_blank = _keyed_rows(primary, key)
    right, right_blank = _keyed_rows(other, key)

    left_keys, right_keys = set(left[key]), set(right[key])
    report = JoinReport(
        matched=len(left_keys & right_keys),
        primary_only=sorted(left_keys - right_keys),
        other_only=sorted(right_keys - left_keys),
        primary_blank=left_blank,
        other_blank=right_blank,
    )
    if left_blank or right_blank:
        logger.warning(
            "Dropped rows with a blank %r key: %d in primary table, %d in density table",
            key,
            left_blank,
            right_blank,
        )
    if report.primary_only:
        logger.warning(
            "%d key(s) only in primary table: %s",
            len(report.primary_only),
            report.primary_only,
        )
    if report.other_only:
        logger.warning(
            "%d key(s) only in density table: %s",
            len(report.other_only),
            report.other_only,
        )

    joined = left.merge(
        right, on=key, how="inner", validate="one_to_one", suffixes=("", "_density")
    )
    if joined.empty:
        raise JoinError(f"No {key!r} values in common between the two tables.")
    logger.info("Joined %d row(s) on %r", len(joined), key)
    return joined, report


def compute_density(
    df: pd.DataFrame,
    *,
    population: str = POPULATION_COLUMN,
    area: str = AREA_COLUMN,
    scale: float = DENSITY_SCALE,
    output: str = DENSITY_COLUMN,
) -> pd.DataFrame:
    """Recompute density as ``population / (area * scale)``.

    Missing inputs and zero areas give ``pd.NA`` rather than NaN or
    infinity.  Returns a copy with the ``output`` column replaced.
    """
    ensure_columns(df, [population, area])
    out = df.copy()
    pop = pd.to_numeric(out[population], errors="coerce").astype("Float64")
    denom = pd.to_numeric(out[area], errors="coerce").astype("Float64") * scale
    denom = denom.mask(denom.eq(0).fillna(False), pd.NA)
    out[output] = pop / denom
    return out


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def load_density_table(
    url: str = DENSITY_SOURCE,
    *,
    keyword: str = DENSITY_TABLE_KEYWORD,
    header_rows: int = HEADER_ROWS,
    session: Optional[requests.Session] = None,
) -> Tuple[pd.DataFrame, CleaningReport]:
    """Scrape, select, normalize and clean the population-density table."""
    candidates = fetch_tables(url, session=session)
    match = select_table(candidates, keyword_matcher(keyword), header_rows=header_rows)
    raw = match.table()
    named = normalize_headers(raw, header_rows)
    return clean_values(named)


def run_pipeline(
    *,
    source: str | Path = BAD_DRIVERS_SOURCE,
    density_url: str = DENSITY_SOURCE,
    keyword: str = DENSITY_TABLE_KEYWORD,
    header_rows: int = HEADER_ROWS,
    session: Optional[requests.Session] = None,
) -> Dict[str, object]:
    """Run the full data pipeline.

    Parameters
    ----------
    source : str or Path, optional
        Location of the bad-drivers CSV.  Defaults to
        ``config.BAD_DRIVERS_SOURCE``.
    density_url : str, optional
        Page holding the population-density table.
    keyword : str, optional
        Text that must appear in the header of exactly one table on the page.
    header_rows : int, optional
        Number of header rows in the density table.
    session : requests.Session, optional
        HTTP session used for the scrape (handy for stubbing in tests).

    Returns
    -------
    Dict[str, object]
        ``"primary"``, ``"density"`` and ``"joined"`` DataFrames plus the
        ``"cleaning"`` and ``"join"`` reports.
    """
    # 1. Primary dataset
    primary = prepare_bad_drivers(load_bad_drivers_raw(source))
    logger.info("Loaded %d bad-drivers row(s)", len(primary))

    # 2. Scraped density table
    density, cleaning = load_density_table(
        density_url, keyword=keyword, header_rows=header_rows, session=session
    )
    logger.info("Cleaned density table: %d row(s), columns %s", len(density), list(density.columns))

    # 3. Join and recompute density from population and area
    joined, join_report = join_datasets(primary, density)
    joined = compute_density(joined)

    return {
        "primary": primary,
        "density": density,
        "joined": joined,
        "cleaning": cleaning,
        "join": join_report,
    }
