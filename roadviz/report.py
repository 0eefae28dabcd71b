"""
Single-page HTML report: walkthrough prose interleaved with the figures.
"""

from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Dict, Tuple

import plotly.graph_objects as go
from plotly.offline import get_plotlyjs_version

logger = logging.getLogger(__name__)

REPORT_TITLE = "A grammar of graphics, one layer at a time"

# Same plotly.js build as the installed plotly package
PLOTLY_CDN = f"https://cdn.plot.ly/plotly-{get_plotlyjs_version()}.min.js"

# Figure name -> (section heading, prose)
SECTIONS: Dict[str, Tuple[str, str]] = {
    "basic_scatter": (
        "Data, aesthetics and a geometry",
        "Every chart starts from a data frame and a mapping from columns to "
        "visual properties. Here the share of alcohol-impaired drivers goes "
        "to the x position, fatal collisions per billion miles to the y "
        "position, and each state is drawn as a point.",
    ),
    "colored_scatter": (
        "Mapping a third variable to colour",
        "The region column is derived from a fixed state-to-region lookup. "
        "Mapping it to colour splits the points into groups without adding "
        "a new axis.",
    ),
    "sized_scatter": (
        "Bringing in outside data",
        "Population density does not ship with the road-safety table, so "
        "it is scraped from a reference page, cleaned, joined on state name "
        "and recomputed from population and land area. Here it drives the "
        "marker size.",
    ),
    "smoothed_scatter": (
        "Statistical layers",
        "Layers can show transformed data as well as raw data. A least-"
        "squares line summarises the overall trend on top of the points.",
    ),
    "faceted_scatter": (
        "Facets",
        "Instead of colour, the region can split the chart into small "
        "multiples that share their axes, which makes within-region "
        "patterns easier to compare.",
    ),
    "themed_scatter": (
        "Themes and labels",
        "The last step changes no data mappings at all: a theme, readable "
        "axis labels, a title and a source caption turn the exploratory "
        "plot into one ready to publish.",
    ),
}


def _section(name: str, fig: go.Figure) -> str:
    heading, prose = SECTIONS.get(name, (name.replace("_", " ").capitalize(), ""))
    body = fig.to_html(full_html=False, include_plotlyjs=False)
    return (
        f"<section id=\"{html.escape(name)}\">\n"
        f"<h2>{html.escape(heading)}</h2>\n"
        f"<p>{html.escape(prose)}</p>\n"
        f"{body}\n"
        "</section>"
    )


def render_report(figures: Dict[str, go.Figure], path: Path) -> Path:
    """Write the report to ``path`` (atomically) and return it."""
    sections = "\n".join(_section(name, fig) for name, fig in figures.items())
    doc = (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{html.escape(REPORT_TITLE)}</title>\n"
        f"<script src=\"{PLOTLY_CDN}\"></script>\n"
        "</head>\n<body>\n"
        f"<h1>{html.escape(REPORT_TITLE)}</h1>\n"
        f"{sections}\n"
        "</body>\n</html>\n"
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(doc, encoding="utf-8")
    tmp_path.replace(path)
    logger.info("Report written to %s (%d figure(s))", path, len(figures))
    return path
