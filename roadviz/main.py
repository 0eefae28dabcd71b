"""
Road-safety walkthrough: load the bad-drivers table, enrich it with scraped
population density, and render the sequence of scatter plots (plus an
optional HTML report).
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .config import (
    BAD_DRIVERS_SOURCE,
    DEFAULT_OUTPUT_FORMAT,
    DENSITY_SOURCE,
    DENSITY_TABLE_KEYWORD,
    HEADER_ROWS,
    OUTPUT_FORMATS,
    REPORT_FILENAME,
)
from .data_manager import resolve_output_dir, write_figures
from .pipeline import run_pipeline
from .plotting import build_figures
from .report import render_report

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render the grammar-of-graphics walkthrough figures."
    )
    parser.add_argument(
        "--source",
        default=BAD_DRIVERS_SOURCE,
        help="Path or URL to the bad-drivers CSV (default: FiveThirtyEight GitHub URL).",
    )
    parser.add_argument(
        "--density-url",
        default=DENSITY_SOURCE,
        help="Page holding the population-density table (default: Wikipedia).",
    )
    parser.add_argument(
        "--keyword",
        default=DENSITY_TABLE_KEYWORD,
        help=f"Case-sensitive text identifying the density table header (default: '{DENSITY_TABLE_KEYWORD}').",
    )
    parser.add_argument(
        "--header-rows",
        type=int,
        choices=(1, 2),
        default=HEADER_ROWS,
        help=f"Number of header rows in the density table (default: {HEADER_ROWS}).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for figures (default: $ROADVIZ_OUTPUT_DIR, then ./figures).",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=DEFAULT_OUTPUT_FORMAT,
        help="Figure file format; png/svg need kaleido (default: html).",
    )
    parser.add_argument(
        "--report",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Also write a single-page HTML report (default: on).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    payload = run_pipeline(
        source=args.source,
        density_url=args.density_url,
        keyword=args.keyword,
        header_rows=args.header_rows,
    )
    figures = build_figures(payload["primary"], payload["joined"])

    output_dir = resolve_output_dir(args.output_dir)
    paths = write_figures(figures, output_dir, fmt=args.format)
    if args.report:
        render_report(figures, output_dir / REPORT_FILENAME)

    cleaning = payload["cleaning"]
    join = payload["join"]
    logger.info(
        "Done | primary rows: %d | density rows: %d | joined rows: %d | "
        "coercion failures: %d | unmatched keys: %d/%d | figures: %d",
        len(payload["primary"]),
        len(payload["density"]),
        len(payload["joined"]),
        cleaning.total_failures,
        len(join.primary_only),
        len(join.other_only),
        len(paths),
    )


if __name__ == "__main__":
    main()
