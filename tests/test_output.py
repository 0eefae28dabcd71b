"""
Tests for figure output and the HTML report.

All files go to pytest's tmp_path; static image export (kaleido) is not
exercised here.
"""

from pathlib import Path

import plotly.graph_objects as go
import pytest

from roadviz import data_manager
from roadviz.report import SECTIONS, render_report


def _figure(title: str = "t") -> go.Figure:
    return go.Figure(go.Scatter(x=[1, 2], y=[3, 4]), layout=dict(title=title))


# ============================================================================
# Output directory resolution
# ============================================================================

def test_resolve_output_dir_prefers_explicit_path(tmp_path, monkeypatch):
    monkeypatch.setenv("ROADVIZ_OUTPUT_DIR", str(tmp_path / "from_env"))
    path = data_manager.resolve_output_dir(tmp_path / "explicit")

    assert path == (tmp_path / "explicit").resolve()
    assert path.is_dir()
    assert not (path / ".write_test").exists()


def test_resolve_output_dir_uses_env_var(tmp_path, monkeypatch):
    monkeypatch.setenv("ROADVIZ_OUTPUT_DIR", str(tmp_path / "from_env"))

    assert data_manager.resolve_output_dir() == (tmp_path / "from_env").resolve()


def test_resolve_output_dir_skips_unwritable_candidate(tmp_path, monkeypatch):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    monkeypatch.setenv("ROADVIZ_OUTPUT_DIR", str(tmp_path / "from_env"))

    # A path below a regular file cannot be created
    assert data_manager.resolve_output_dir(blocker / "sub") == (tmp_path / "from_env").resolve()


# ============================================================================
# Writing figures
# ============================================================================

def test_write_figure_html(tmp_path):
    path = data_manager.write_figure(_figure(), tmp_path / "fig.html")

    assert path.exists()
    assert "plotly" in path.read_text(encoding="utf-8").lower()
    assert [p.name for p in tmp_path.iterdir()] == ["fig.html"]


def test_write_figure_rejects_unknown_format(tmp_path):
    with pytest.raises(ValueError, match="Unsupported"):
        data_manager.write_figure(_figure(), tmp_path / "fig.gif")


def test_write_figures_numbers_in_order(tmp_path):
    figures = {"basic_scatter": _figure("a"), "themed_scatter": _figure("b")}
    paths = data_manager.write_figures(figures, tmp_path)

    assert [p.name for p in paths] == ["1_basic_scatter.html", "2_themed_scatter.html"]
    assert all(p.exists() for p in paths)


# ============================================================================
# Report
# ============================================================================

def test_render_report(tmp_path):
    figures = {"basic_scatter": _figure(), "faceted_scatter": _figure()}
    path = render_report(figures, tmp_path / "out" / "report.html")
    doc = path.read_text(encoding="utf-8")

    assert doc.startswith("<!DOCTYPE html>")
    assert SECTIONS["basic_scatter"][0] in doc
    assert SECTIONS["faceted_scatter"][0] in doc
    assert doc.count("<section") == 2
    assert "cdn.plot.ly" in doc
    assert sorted(p.name for p in path.parent.iterdir()) == ["report.html"]


def test_render_report_unknown_figure_gets_generic_heading(tmp_path):
    path = render_report({"extra_view": _figure()}, tmp_path / "report.html")

    assert "Extra view" in path.read_text(encoding="utf-8")


def test_render_report_loads_matching_plotly_js(tmp_path):
    from plotly.offline import get_plotlyjs_version

    path = render_report({"basic_scatter": _figure()}, tmp_path / "report.html")

    assert f"plotly-{get_plotlyjs_version()}.min.js" in path.read_text(encoding="utf-8")
