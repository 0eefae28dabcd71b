"""
Configuration constants for the road-safety visualization walkthrough.
"""

from typing import Dict, List, Tuple

# ======================================================
#  DATA SOURCES / CONSTANTS
# ======================================================
# FiveThirtyEight "bad drivers" table (one row per US state + DC)
BAD_DRIVERS_SOURCE: str = (
    "https://raw.githubusercontent.com/fivethirtyeight/data/master/"
    "bad-drivers/bad-drivers.csv"
)

# Short names assigned by position (the CSV ships long, sentence-like headers)
BAD_DRIVERS_COLUMNS: List[str] = [
    "state",
    "num_drivers",
    "perc_speeding",
    "perc_alcohol",
    "perc_not_distracted",
    "perc_no_previous",
    "insurance_premiums",
    "losses",
]

DENSITY_SOURCE: str = (
    "https://en.wikipedia.org/wiki/"
    "List_of_states_and_territories_of_the_United_States_by_population_density"
)

# Case-sensitive; matched against the header rows of each scraped table
DENSITY_TABLE_KEYWORD: str = "Land area"

HEADER_ROWS: int = 2
CATEGORY_COLUMN: str = "state"

REQUEST_TIMEOUT: int = 30
USER_AGENT: str = "roadviz/0.1 (grammar-of-graphics walkthrough)"

# ======================================================
#  DERIVED FIELDS
# ======================================================
POPULATION_COLUMN: str = "population"
AREA_COLUMN: str = "land_area_km"
DENSITY_COLUMN: str = "density"

# km^2 -> mi^2, so density comes out as people per square mile
DENSITY_SCALE: float = 0.386102

# ======================================================
#  REGIONS (US Census Bureau regions)
# ======================================================
REGION_FALLBACK: str = "Other"

REGION_MEMBERS: Dict[str, List[str]] = {
    "Northeast": [
        "Connecticut",
        "Maine",
        "Massachusetts",
        "New Hampshire",
        "New Jersey",
        "New York",
        "Pennsylvania",
        "Rhode Island",
        "Vermont",
    ],
    "Midwest": [
        "Illinois",
        "Indiana",
        "Iowa",
        "Kansas",
        "Michigan",
        "Minnesota",
        "Missouri",
        "Nebraska",
        "North Dakota",
        "Ohio",
        "South Dakota",
        "Wisconsin",
    ],
    "South": [
        "Alabama",
        "Arkansas",
        "Delaware",
        "District of Columbia",
        "Florida",
        "Georgia",
        "Kentucky",
        "Louisiana",
        "Maryland",
        "Mississippi",
        "North Carolina",
        "Oklahoma",
        "South Carolina",
        "Tennessee",
        "Texas",
        "Virginia",
        "West Virginia",
    ],
    "West": [
        "Alaska",
        "Arizona",
        "California",
        "Colorado",
        "Hawaii",
        "Idaho",
        "Montana",
        "Nevada",
        "New Mexico",
        "Oregon",
        "Utah",
        "Washington",
        "Wyoming",
    ],
}

# ======================================================
#  PLOT DEFAULTS
# ======================================================
REGION_COLORS: Dict[str, str] = {
    "Northeast": "#1f77b4",
    "Midwest": "#d62728",
    "South": "#2ca02c",
    "West": "#9467bd",
    "Other": "#7f7f7f",
}

AXIS_LABELS: Dict[str, str] = {
    "state": "State",
    "region": "Region",
    "num_drivers": "Drivers in fatal collisions (per billion miles)",
    "perc_speeding": "Speeding drivers (%)",
    "perc_alcohol": "Alcohol-impaired drivers (%)",
    "insurance_premiums": "Car insurance premium ($)",
    "density": "Population density (per sq. mile)",
}

BASE_TEMPLATE: str = "plotly_white"
FIGURE_SIZE: Tuple[int, int] = (900, 600)
MARKER_SIZE_MAX: int = 40

OUTPUT_FORMATS: Tuple[str, ...] = ("html", "png", "svg")
DEFAULT_OUTPUT_FORMAT: str = "html"
OUTPUT_DIR_ENV: str = "ROADVIZ_OUTPUT_DIR"
REPORT_FILENAME: str = "report.html"
