from __future__ import annotations

from typing import Dict

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .config import (
    AXIS_LABELS,
    BASE_TEMPLATE,
    FIGURE_SIZE,
    MARKER_SIZE_MAX,
    REGION_COLORS,
)
from .regions import REGION_ORDER


# ============================================================
# Configuration / constants
# ============================================================

X_COL = "perc_alcohol"
Y_COL = "num_drivers"

HOVER_TEMPLATE_FIT = (
    "Linear fit<br>"
    "%{x:.1f}% alcohol-impaired<br>"
    "%{y:.1f} drivers per billion miles<extra></extra>"
)

CATEGORY_ORDERS: dict[str, list[str]] = {"region": REGION_ORDER}


# ============================================================
# Helper functions
# ============================================================


def plot_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Copy of ``df`` with nullable numeric columns as plain float64 (NA -> NaN)
    and categorical/string columns as plain objects, which is what plotly
    expects.
    Ordering of categories is handled through ``category_orders`` instead.
    """
    out = df.copy()
    for col in out.columns:
        dtype = out[col].dtype
        if isinstance(dtype, (pd.CategoricalDtype, pd.StringDtype)):
            out[col] = out[col].astype("object")
        elif isinstance(dtype, pd.api.extensions.ExtensionDtype) and pd.api.types.is_numeric_dtype(dtype):
            out[col] = out[col].to_numpy(dtype="float64", na_value=np.nan)
    return out


def _labels(*cols: str) -> dict[str, str]:
    return {c: AXIS_LABELS[c] for c in cols if c in AXIS_LABELS}


def linear_fit(df: pd.DataFrame, x: str, y: str) -> tuple[np.ndarray, np.ndarray] | None:
    """
    Least-squares straight line through the complete (x, y) pairs of ``df``.

    Returns the x range and fitted y values, or None when fewer than two
    distinct x values are available.
    """
    pts = plot_frame(df[[x, y]]).dropna()
    if pts[x].nunique() < 2:
        return None
    slope, intercept = np.polyfit(pts[x], pts[y], deg=1)
    xs = np.linspace(pts[x].min(), pts[x].max(), 50)
    return xs, slope * xs + intercept


def _add_fit_layer(fig: go.Figure, df: pd.DataFrame, x: str, y: str) -> go.Figure:
    fit = linear_fit(df, x, y)
    if fit is None:
        return fig
    xs, ys = fit
    fig.add_trace(
        go.Scatter(
            x=xs,
            y=ys,
            mode="lines",
            line=dict(width=3, color="#444444", dash="dash"),
            name="Linear fit",
            hovertemplate=HOVER_TEMPLATE_FIT,
        )
    )
    return fig


# ============================================================
# The figure sequence
# ============================================================


def basic_scatter(df: pd.DataFrame) -> go.Figure:
    """Data + aesthetic mapping (x, y) + a point geometry, nothing else."""
    if df.empty:
        return go.Figure()
    return px.scatter(plot_frame(df), x=X_COL, y=Y_COL)


def colored_scatter(df: pd.DataFrame) -> go.Figure:
    """Map region to colour."""
    if df.empty:
        return go.Figure()
    return px.scatter(
        plot_frame(df),
        x=X_COL,
        y=Y_COL,
        color="region",
        category_orders=CATEGORY_ORDERS,
        color_discrete_map=REGION_COLORS,
    )


def sized_scatter(df: pd.DataFrame) -> go.Figure:
    """Map population density to marker size (needs the joined data)."""
    if df.empty:
        return go.Figure()
    data = plot_frame(df).dropna(subset=["density"])
    return px.scatter(
        data,
        x=X_COL,
        y=Y_COL,
        color="region",
        size="density",
        size_max=MARKER_SIZE_MAX,
        hover_name="state",
        category_orders=CATEGORY_ORDERS,
        color_discrete_map=REGION_COLORS,
    )


def smoothed_scatter(df: pd.DataFrame) -> go.Figure:
    """Add a statistical layer: a straight-line fit over all states."""
    fig = colored_scatter(df)
    if df.empty:
        return fig
    return _add_fit_layer(fig, df, X_COL, Y_COL)


def faceted_scatter(df: pd.DataFrame) -> go.Figure:
    """One panel per region, shared axes."""
    if df.empty:
        return go.Figure()
    fig = px.scatter(
        plot_frame(df),
        x=X_COL,
        y=Y_COL,
        color="region",
        facet_col="region",
        facet_col_wrap=3,
        hover_name="state",
        category_orders=CATEGORY_ORDERS,
        color_discrete_map=REGION_COLORS,
        labels=_labels(X_COL, Y_COL, "region"),
    )
    # "region=South" -> "South"
    fig.for_each_annotation(lambda a: a.update(text=a.text.split("=")[-1]))
    return fig


def themed_scatter(df: pd.DataFrame) -> go.Figure:
    """
    Final version: theme, full labels, title and caption on top of the
    colour/size mappings and the fit layer.
    """
    if df.empty:
        return go.Figure()
    data = plot_frame(df).dropna(subset=["density"])
    fig = px.scatter(
        data,
        x=X_COL,
        y=Y_COL,
        color="region",
        size="density",
        size_max=MARKER_SIZE_MAX,
        hover_name="state",
        hover_data={"insurance_premiums": ":.0f", "density": ":.0f"},
        category_orders=CATEGORY_ORDERS,
        color_discrete_map=REGION_COLORS,
        labels=_labels(X_COL, Y_COL, "region", "density", "insurance_premiums"),
        title="<b>Fatal collisions vs. alcohol-impaired drivers, by US state</b>",
        template=BASE_TEMPLATE,
    )
    _add_fit_layer(fig, data, X_COL, Y_COL)

    width, height = FIGURE_SIZE
    fig.update_traces(marker=dict(line=dict(width=1, color="white")), selector=dict(mode="markers"))
    fig.update_layout(
        width=width,
        height=height,
        font=dict(family="Helvetica, Arial, sans-serif", size=13),
        legend=dict(
            title="Region",
            orientation="h",
            x=0.5,
            y=1.02,
            xanchor="center",
            yanchor="bottom",
            bordercolor="#c7c7c7",
            borderwidth=1,
            bgcolor="#f9f9f9",
        ),
        margin=dict(t=110, l=60, r=40, b=80),
        plot_bgcolor="#f5f7fb",
    )
    fig.add_annotation(
        text="Marker area proportional to population density. "
        "Sources: FiveThirtyEight, Wikipedia.",
        xref="paper",
        yref="paper",
        x=0,
        y=-0.14,
        showarrow=False,
        font=dict(size=11, color="#666666"),
        xanchor="left",
    )
    return fig


# ============================================================
# Main plotting function
# ============================================================


def build_figures(primary: pd.DataFrame, joined: pd.DataFrame) -> Dict[str, go.Figure]:
    """
    Build the walkthrough's figures in presentation order.

    Parameters
    ----------
    primary : pd.DataFrame
        Bad-drivers data with a ``region`` column.
    joined : pd.DataFrame
        ``primary`` joined with the density table, with a ``density`` column.

    Returns
    -------
    Dict[str, go.Figure]
        Figure name -> figure, each one refining the previous.
    """
    return {
        "basic_scatter": basic_scatter(primary),
        "colored_scatter": colored_scatter(primary),
        "sized_scatter": sized_scatter(joined),
        "smoothed_scatter": smoothed_scatter(primary),
        "faceted_scatter": faceted_scatter(primary),
        "themed_scatter": themed_scatter(joined),
    }
