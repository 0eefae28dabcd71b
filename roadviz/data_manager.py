"""Output manager for figure files.

This module picks a writable directory for rendered charts and writes
each artifact atomically, so an interrupted run never leaves a
half-written figure behind.  Nothing is read back between runs; every
run regenerates its outputs from scratch.
"""

from __future__ import annotations

import os
import tempfile
import logging
from pathlib import Path
from typing import Dict, List, Optional

import plotly.graph_objects as go

from .config import DEFAULT_OUTPUT_FORMAT, OUTPUT_DIR_ENV, OUTPUT_FORMATS

logger = logging.getLogger(__name__)


def _resolve_output_dir(preferred: Optional[str | Path] = None) -> Path:
    """Select a writable directory for figures.

    The lookup order is:

    1. ``preferred``, if given (e.g. a ``--output-dir`` flag).
    2. The ``ROADVIZ_OUTPUT_DIR`` environment variable, if set.
    3. A ``figures`` folder at the repository root.
    4. A temporary directory in ``/tmp``.

    Each candidate path is tested for writability by attempting to
    create and delete a sentinel file.  The first path that succeeds
    is returned.
    """
    candidates: list[Path] = []
    if preferred:
        candidates.append(Path(preferred).expanduser().resolve())
    env = os.getenv(OUTPUT_DIR_ENV)
    if env:
        candidates.append(Path(env).expanduser().resolve())

    # Repo root /figures (two levels up from this file)
    candidates.append(Path(__file__).resolve().parent.parent / "figures")
    # Temp fallback
    candidates.append(Path(tempfile.gettempdir()) / "roadviz_figures")

    for path in candidates:
        try:
            path.mkdir(parents=True, exist_ok=True)
            test_file = path / ".write_test"
            test_file.write_text("ok", encoding="utf-8")
            test_file.unlink()
            return path
        except OSError as exc:
            logger.debug("Output directory %s not writable: %s", path, exc)
            continue

    raise OSError(f"No writable output directory among {candidates}")


def resolve_output_dir(preferred: Optional[str | Path] = None) -> Path:
    path = _resolve_output_dir(preferred)
    logger.info("Writing figures to %s", path)
    return path


def write_figure(fig: go.Figure, path: Path) -> Path:
    """Write a figure atomically; the suffix of ``path`` picks the format.

    ``.html`` uses ``write_html``; ``.png`` and ``.svg`` go through
    ``write_image``, which needs the ``kaleido`` package.  The figure is
    first written to a temporary file in the same directory and then
    renamed to the final location.
    """
    fmt = path.suffix.lstrip(".").lower()
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported figure format {fmt!r}; expected one of {OUTPUT_FORMATS}")

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.stem}.tmp.{fmt}")
    if fmt == "html":
        fig.write_html(tmp_path, include_plotlyjs="cdn")
    else:
        fig.write_image(tmp_path, format=fmt)
    tmp_path.replace(path)
    return path


def write_figures(
    figures: Dict[str, go.Figure],
    output_dir: Path,
    fmt: str = DEFAULT_OUTPUT_FORMAT,
) -> List[Path]:
    """Write every figure as ``NN_<name>.<fmt>``, numbered in sequence order."""
    width = len(str(len(figures)))
    paths = []
    for i, (name, fig) in enumerate(figures.items(), start=1):
        path = output_dir / f"{str(i).zfill(width)}_{name}.{fmt}"
        paths.append(write_figure(fig, path))
        logger.info("Saved figure %s", path.name)
    return paths
