"""Static state -> region lookup used to colour and facet the plots."""

from __future__ import annotations

from typing import Dict, List

import pandas as pd

from .config import CATEGORY_COLUMN, REGION_FALLBACK, REGION_MEMBERS

REGION_ORDER: List[str] = [*REGION_MEMBERS, REGION_FALLBACK]

REGIONS: Dict[str, str] = {
    state: region for region, states in REGION_MEMBERS.items() for state in states
}


def classify_region(state: object) -> str:
    """Return the region tag for ``state``; unknown keys map to ``Other``."""
    if not isinstance(state, str):
        return REGION_FALLBACK
    return REGIONS.get(state, REGION_FALLBACK)


def add_region(df: pd.DataFrame, *, key: str = CATEGORY_COLUMN) -> pd.DataFrame:
    """Return a copy of ``df`` with an ordered categorical ``region`` column."""
    out = df.copy()
    out["region"] = pd.Categorical(
        out[key].astype("object").map(classify_region), categories=REGION_ORDER, ordered=True
    )
    return out
