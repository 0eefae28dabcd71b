"""Tests for the static state -> region lookup."""

import pandas as pd
import pytest

from roadviz.config import REGION_FALLBACK, REGION_MEMBERS
from roadviz.regions import REGION_ORDER, REGIONS, add_region, classify_region


def test_lookup_covers_fifty_states_and_dc():
    assert len(REGIONS) == 51
    assert "District of Columbia" in REGIONS


def test_each_state_belongs_to_one_region():
    members = [s for states in REGION_MEMBERS.values() for s in states]
    assert len(members) == len(set(members))


@pytest.mark.parametrize(
    "state, region",
    [
        ("Maine", "Northeast"),
        ("Ohio", "Midwest"),
        ("Texas", "South"),
        ("District of Columbia", "South"),
        ("Hawaii", "West"),
    ],
)
def test_classify_region_known(state, region):
    assert classify_region(state) == region


@pytest.mark.parametrize("state", ["Puerto Rico", "texas", "Washington state", "", None, float("nan")])
def test_classify_region_is_total(state):
    assert classify_region(state) == REGION_FALLBACK


def test_add_region_returns_ordered_categorical_copy():
    df = pd.DataFrame({"state": pd.Categorical(["Utah", "Guam", "Iowa"])})
    out = add_region(df)

    assert "region" not in df.columns
    assert out["region"].tolist() == ["West", "Other", "Midwest"]
    assert list(out["region"].cat.categories) == REGION_ORDER
    assert out["region"].cat.ordered
    assert REGION_ORDER[-1] == REGION_FALLBACK
