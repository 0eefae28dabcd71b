import sys
from pathlib import Path
from functools import lru_cache

import plotly.express as px

# ======================================================
# Make local package importable
# ======================================================
ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from roadviz import plotting  # noqa: E402
from roadviz.config import AXIS_LABELS, REGION_COLORS  # noqa: E402


@lru_cache(maxsize=1)
def load_pipeline():
    """
    Load and cache the pipeline payload.

    Runs roadviz.pipeline.run_pipeline() exactly once (one HTTP GET for
    the density page). Subsequent calls reuse the cached payload.
    """
    from roadviz import pipeline

    return pipeline.run_pipeline()


# ======================================================
# 1. The data
# ======================================================
# One row per state: fatal collisions per billion miles, % speeding,
# % alcohol-impaired, insurance premiums... plus the derived region.
payload = load_pipeline()
primary = payload["primary"]
joined = payload["joined"]

print(primary.head())
print(joined[["state", "region", "population", "density"]].head())


# ======================================================
# 2. Aesthetics: map columns to x and y
# ======================================================
fig = plotting.basic_scatter(primary)
fig.show()


# ======================================================
# 3. A third aesthetic: colour
# ======================================================
fig = plotting.colored_scatter(primary)
fig.show()

# Any column can drive colour; a numeric one gives a continuous scale
fig = px.scatter(
    plotting.plot_frame(primary),
    x="perc_alcohol",
    y="num_drivers",
    color="insurance_premiums",
    labels=AXIS_LABELS,
)
fig.show()


# ======================================================
# 4. Size from the scraped density table
# ======================================================
fig = plotting.sized_scatter(joined)
fig.show()


# ======================================================
# 5. Statistical layer
# ======================================================
fig = plotting.smoothed_scatter(primary)
fig.show()


# ======================================================
# 6. Facets
# ======================================================
fig = plotting.faceted_scatter(primary)
fig.show()

# Same idea with a different pair of variables
fig = px.scatter(
    plotting.plot_frame(primary),
    x="perc_speeding",
    y="num_drivers",
    facet_col="region",
    color="region",
    color_discrete_map=REGION_COLORS,
    labels=AXIS_LABELS,
)
fig.show()


# ======================================================
# 7. Theme and labels
# ======================================================
fig = plotting.themed_scatter(joined)
fig.show()
