"""
Fetches a web page and pulls its HTML tables out as raw, unlabeled frames.

Each ``<table>`` becomes a DataFrame with positional (integer) columns and
string cells.  Header rows are kept as ordinary rows so the caller can
decide how many of them to consume when building column names.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd
import requests
from bs4 import BeautifulSoup

from .config import HEADER_ROWS, REQUEST_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")

HeaderMatcher = Callable[[str], bool]


class TableSelectionError(LookupError):
    """Raised when a table lookup does not resolve to exactly one candidate."""


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


def _cell_text(cell) -> str:
    return _WS_RE.sub(" ", cell.get_text(" ", strip=True)).strip()


def _span(cell, attr: str) -> int:
    try:
        return max(int(cell.get(attr, 1)), 1)
    except (TypeError, ValueError):
        return 1


def _table_rows(table) -> List[List[str]]:
    rows: List[List[str]] = []
    # position -> (rows still covered, text to place)
    pending: Dict[int, Tuple[int, str]] = {}

    def _take_pending(row: List[str], pos: int) -> None:
        left, text = pending.pop(pos)
        row.append(text)
        if left > 1:
            pending[pos] = (left - 1, text)

    for tr in table.find_all("tr"):
        # Skip rows belonging to a nested table
        if tr.find_parent("table") is not table:
            continue
        row: List[str] = []
        for cell in tr.find_all(["th", "td"], recursive=False):
            while len(row) in pending:
                _take_pending(row, len(row))
            text = _cell_text(cell)
            down = _span(cell, "rowspan")
            # Header labels appear once; data values repeat down their span
            fill = "" if cell.name == "th" else text
            for _ in range(_span(cell, "colspan")):
                if down > 1:
                    pending[len(row)] = (down - 1, fill)
                row.append(text)
        for pos in sorted(p for p in pending if p >= len(row)):
            row.extend([""] * (pos - len(row)))
            _take_pending(row, pos)
        if row:
            rows.append(row)
    return rows


def extract_tables(html: str) -> List[pd.DataFrame]:
    """Parse every ``<table>`` element of ``html`` into a raw frame.

    Cells spanning several columns are repeated into each position they
    cover.  A header cell spanning several rows leaves an empty string in
    the rows below it; a data cell repeats its value.  Short rows are
    right-padded with empty strings, so every row of a table has the same
    width.

    Parameters
    ----------
    html : str
        Page markup.

    Returns
    -------
    List[pd.DataFrame]
        One frame per table, in document order.  Columns are ``0..n-1``.
    """
    soup = BeautifulSoup(html, "html.parser")
    tables: List[pd.DataFrame] = []
    for table in soup.find_all("table"):
        rows = _table_rows(table)
        if not rows:
            continue
        width = max(len(r) for r in rows)
        padded = [r + [""] * (width - len(r)) for r in rows]
        tables.append(pd.DataFrame(padded, columns=range(width), dtype="object"))
    return tables


def fetch_tables(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: int = REQUEST_TIMEOUT,
) -> List[pd.DataFrame]:
    """Download ``url`` and return every HTML table found on it.

    Network and HTTP errors are not handled here; they propagate as
    ``requests.RequestException`` and abort the run.
    """
    http = session or requests.Session()
    logger.info("Fetching %s", url)
    resp = http.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    resp.raise_for_status()
    tables = extract_tables(resp.text)
    logger.info("Found %d table(s) on %s", len(tables), url)
    return tables


# ---------------------------------------------------------------------------
# Table selector
# ---------------------------------------------------------------------------


class MatchStatus(enum.Enum):
    NOT_FOUND = "not found"
    FOUND = "found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class TableMatch:
    """Outcome of :func:`select_table`.

    ``indices`` holds the positions (in the candidate list) of every
    table whose header satisfied the matcher.
    """

    status: MatchStatus
    indices: List[int] = field(default_factory=list)
    candidates: Sequence[pd.DataFrame] = field(default_factory=list, repr=False)

    @property
    def count(self) -> int:
        return len(self.indices)

    def table(self) -> pd.DataFrame:
        """Return the matched table, or raise unless exactly one matched."""
        if self.status is not MatchStatus.FOUND:
            raise TableSelectionError(
                f"Expected exactly one matching table, got {self.count} "
                f"({self.status.value}; candidates at {self.indices})."
            )
        return self.candidates[self.indices[0]]


def header_text(table: pd.DataFrame, header_rows: int = HEADER_ROWS) -> str:
    """Join the text of the first ``header_rows`` rows with single spaces."""
    head = table.head(header_rows).astype(str).to_numpy().ravel()
    return " ".join(cell for cell in head if cell)


def keyword_matcher(keyword: str) -> HeaderMatcher:
    """Case-sensitive substring predicate over header text."""

    def _match(text: str) -> bool:
        return keyword in text

    return _match


def select_table(
    candidates: Sequence[pd.DataFrame],
    matcher: HeaderMatcher,
    *,
    header_rows: int = HEADER_ROWS,
) -> TableMatch:
    """Find the single candidate whose header satisfies ``matcher``.

    Never falls back to the first hit: zero hits and several hits are
    reported as ``NOT_FOUND`` and ``AMBIGUOUS`` respectively.
    """
    hits = [
        i
        for i, table in enumerate(candidates)
        if matcher(header_text(table, header_rows))
    ]
    if not hits:
        status = MatchStatus.NOT_FOUND
    elif len(hits) == 1:
        status = MatchStatus.FOUND
    else:
        status = MatchStatus.AMBIGUOUS
    logger.debug("Table selection: %s %s", status.value, hits)
    return TableMatch(status=status, indices=hits, candidates=candidates)
