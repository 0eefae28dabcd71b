"""
Tests for the figure sequence.

Figures are inspected structurally (traces, layout); nothing is rendered.
"""

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest

from roadviz import plotting
from roadviz.pipeline import compute_density
from roadviz.regions import add_region


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def primary():
    df = pd.DataFrame(
        {
            "state": ["Maine", "Ohio", "Texas", "Utah", "Iowa", "Guam"],
            "num_drivers": pd.array([15.1, 14.1, 19.4, 11.3, None, 12.0], dtype="Float64"),
            "perc_alcohol": pd.array([30.0, 28.0, 38.0, 16.0, 25.0, 20.0], dtype="Float64"),
            "perc_speeding": pd.array([38.0, 28.0, 40.0, 43.0, 17.0, 20.0], dtype="Float64"),
            "insurance_premiums": pd.array([661.9, 697.7, 1004.8, 809.4, 649.1, 700.0], dtype="Float64"),
        }
    )
    return add_region(df)


@pytest.fixture
def joined(primary):
    df = primary.copy()
    df["population"] = pd.array([1.3e6, 11.7e6, 29.1e6, 3.2e6, 3.2e6, 0.15e6], dtype="Float64")
    df["land_area_km"] = pd.array([79883, 105829, 676587, 212818, 144669, None], dtype="Float64")
    return compute_density(df)


# ============================================================================
# Helpers
# ============================================================================

def test_plot_frame_converts_nullable_columns(primary):
    out = plotting.plot_frame(primary)

    assert out["num_drivers"].dtype == np.float64
    assert np.isnan(out.loc[4, "num_drivers"])
    assert out["region"].dtype == object
    assert primary["num_drivers"].dtype == "Float64"


def test_linear_fit_recovers_line():
    df = pd.DataFrame({"x": [0.0, 1.0, 2.0, 3.0], "y": [1.0, 3.0, 5.0, 7.0]})
    xs, ys = plotting.linear_fit(df, "x", "y")

    assert xs[0] == pytest.approx(0.0)
    assert xs[-1] == pytest.approx(3.0)
    assert ys == pytest.approx(2 * xs + 1)


def test_linear_fit_needs_two_distinct_x():
    df = pd.DataFrame({"x": [1.0, 1.0], "y": [2.0, 3.0]})

    assert plotting.linear_fit(df, "x", "y") is None


# ============================================================================
# Figure sequence
# ============================================================================

def test_build_figures_order(primary, joined):
    figures = plotting.build_figures(primary, joined)

    assert list(figures) == [
        "basic_scatter",
        "colored_scatter",
        "sized_scatter",
        "smoothed_scatter",
        "faceted_scatter",
        "themed_scatter",
    ]
    assert all(isinstance(fig, go.Figure) for fig in figures.values())


def test_basic_scatter_single_trace(primary):
    fig = plotting.basic_scatter(primary)

    assert len(fig.data) == 1
    assert len(fig.data[0].x) == len(primary)


def test_colored_scatter_one_trace_per_region(primary):
    fig = plotting.colored_scatter(primary)
    names = [trace.name for trace in fig.data]

    assert names == ["Northeast", "Midwest", "South", "West", "Other"]
    assert fig.data[0].marker.color == "#1f77b4"


def test_smoothed_scatter_adds_fit_layer(primary):
    fig = plotting.smoothed_scatter(primary)

    assert fig.data[-1].name == "Linear fit"
    assert fig.data[-1].mode == "lines"


def test_sized_scatter_skips_missing_density(joined):
    fig = plotting.sized_scatter(joined)
    plotted = [name for trace in fig.data for name in trace.hovertext]

    assert "Guam" not in plotted
    assert "Texas" in plotted


def test_faceted_scatter_panel_titles(primary):
    fig = plotting.faceted_scatter(primary)
    titles = {a.text for a in fig.layout.annotations}

    assert {"Northeast", "Midwest", "South", "West", "Other"} <= titles
    assert not any("=" in t for t in titles)


def test_themed_scatter_layout(joined):
    fig = plotting.themed_scatter(joined)

    assert "Fatal collisions" in fig.layout.title.text
    assert fig.layout.xaxis.title.text == "Alcohol-impaired drivers (%)"
    assert fig.layout.width == 900
    assert fig.data[-1].name == "Linear fit"


def test_empty_input_gives_empty_figures(primary, joined):
    figures = plotting.build_figures(primary.iloc[0:0], joined.iloc[0:0])

    for fig in figures.values():
        assert len(fig.data) == 0
