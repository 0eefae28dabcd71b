"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import roadviz...' works, and
provides small stand-ins for the scraped page and the HTTP session.
"""
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


DENSITY_PAGE = """
<html><body>
<table class="navbox"><tr><th>Related lists</th></tr><tr><td>Rivers</td></tr></table>
<table class="wikitable">
  <tr>
    <th rowspan="2">Rank</th>
    <th rowspan="2">State/Territory</th>
    <th colspan="2">Density[1]</th>
    <th rowspan="2">Population</th>
    <th colspan="2">Land area</th>
  </tr>
  <tr><th>/mi2</th><th>/km2</th><th>mi2</th><th>km2</th></tr>
  <tr><td>1</td><td>New Jersey</td><td>1,263</td><td>488</td><td>9,288,994</td><td>7,354</td><td>19,047</td></tr>
  <tr><td>2</td><td>Texas[a]</td><td>111</td><td>43</td><td>29,145,505</td><td>261,232</td><td>676,587</td></tr>
  <tr><td>3</td><td>Alaska</td><td>&lt;1.3</td><td>&lt;1</td><td>733,391</td><td>570,641</td><td>1,477,953</td></tr>
  <tr><td>—</td><td>Guam</td><td>—</td><td>—</td><td>153,836</td><td>210</td><td>n/a</td></tr>
</table>
</body></html>
"""


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            import requests

            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Records requested URLs and replays a canned response."""

    def __init__(self, text: str = DENSITY_PAGE, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return FakeResponse(self.text, self.status_code)


@pytest.fixture
def density_page() -> str:
    return DENSITY_PAGE


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def bad_drivers_raw() -> pd.DataFrame:
    """A few rows shaped like the published bad-drivers CSV (long headers)."""
    return pd.DataFrame(
        {
            "State": ["New Jersey", "Texas", "Alaska", "Puerto Rico"],
            "Number of drivers involved in fatal collisions per billion miles": [11.2, 19.4, 18.1, 15.0],
            "Percentage Of Drivers Involved In Fatal Collisions Who Were Speeding": [16, 40, 41, 30],
            "Percentage Of Drivers Involved In Fatal Collisions Who Were Alcohol-Impaired": [28, 38, 25, 30],
            "Percentage Of Drivers Involved In Fatal Collisions Who Were Not Distracted": [86, 91, 90, 90],
            "Percentage Of Drivers Involved In Fatal Collisions Who Had Not Been Involved In Any Previous Accidents": [78, 87, 94, 80],
            "Car Insurance Premiums ($)": [1301.52, 1004.75, 1053.48, 900.0],
            "Losses incurred by insurance companies for collisions per insured driver ($)": [159.85, 156.83, 133.93, 100.0],
        }
    )
