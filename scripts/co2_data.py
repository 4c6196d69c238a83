"""Acquire the CO2 emissions table shown by the chart.

- Looks up when the OWID ``owid-co2-data.csv`` file was last committed.
- Downloads the CSV and picks a fixed set of countries and years out of it.
- Falls back to a small static table when the download or parse fails, so the
  chart always has something to draw.
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import pandas as pd
import requests

logger = logging.getLogger(__name__)

DATA_URL = "https://raw.githubusercontent.com/owid/co2-data/master/owid-co2-data.csv"
COMMIT_API_URL = (
    "https://api.github.com/repos/owid/co2-data/commits"
    "?path=owid-co2-data.csv&per_page=1"
)
COMMIT_TIMEOUT = 10
DATA_TIMEOUT = 30

UNKNOWN = "Unknown"
LIVE = "live"
FALLBACK = "fallback"

REQUIRED_COLUMNS = {"country", "year", "co2"}

# Million tonnes. Seven points per country, which is shorter than the default
# year list; the values are not pinned to particular years.
FALLBACK_TABLE = {
    "United States": (4820.0, 5100.0, 5800.0, 5900.0, 5400.0, 5000.0, 4700.0),
    "China": (2400.0, 3300.0, 3600.0, 6100.0, 8200.0, 9800.0, 10600.0),
    "India": (600.0, 800.0, 1000.0, 1200.0, 1600.0, 2100.0, 2500.0),
    "Germany": (1000.0, 950.0, 900.0, 850.0, 800.0, 750.0, 700.0),
}


class DatasetError(ValueError):
    """The downloaded dataset cannot be used for projection."""


@dataclass(frozen=True)
class Selection:
    countries: Tuple[str, ...]
    years: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "countries", tuple(self.countries))
        object.__setattr__(self, "years", tuple(int(y) for y in self.years))


DEFAULT_SELECTION = Selection(
    countries=("United States", "China", "India", "Germany"),
    years=(1990, 1995, 2000, 2005, 2010, 2015, 2020, 2021, 2022, 2023),
)


@dataclass(frozen=True)
class AcquisitionResult:
    """Finished table plus freshness stamp, handed to the renderer as is."""

    years: Tuple[int, ...]
    table: Mapping[str, Tuple[float, ...]] = field(default_factory=dict)
    last_updated: str = UNKNOWN
    source: str = LIVE

    def __post_init__(self):
        frozen = {country: tuple(values) for country, values in self.table.items()}
        object.__setattr__(self, "years", tuple(self.years))
        object.__setattr__(self, "table", MappingProxyType(frozen))

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK


def format_commit_date(iso_text: str) -> str:
    """Format an ISO-8601 timestamp as e.g. ``January 5, 2024``."""
    if not isinstance(iso_text, str):
        raise TypeError(f"commit date is not text: {iso_text!r}")
    stamp = pd.Timestamp(iso_text)
    if pd.isna(stamp):
        raise ValueError(f"not a timestamp: {iso_text!r}")
    return f"{stamp.month_name()} {stamp.day}, {stamp.year}"


def fetch_last_updated(url: str = COMMIT_API_URL, timeout: float = COMMIT_TIMEOUT) -> str:
    """Return the dataset's last commit date, or ``UNKNOWN`` on any failure."""
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        commits = resp.json()
        if not isinstance(commits, list) or not commits:
            logger.warning("No commit metadata returned from %s", url)
            return UNKNOWN
        return format_commit_date(commits[0]["commit"]["author"]["date"])
    except Exception as exc:
        logger.warning("Could not determine dataset freshness: %s", exc)
        return UNKNOWN


def fetch_dataset(url: str = DATA_URL, timeout: float = DATA_TIMEOUT) -> pd.DataFrame:
    """Download and parse the dataset. Every cell is kept as text."""
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    if not resp.text.strip():
        raise DatasetError(f"empty response from {url}")
    rows = pd.read_csv(
        io.StringIO(resp.text), dtype=str, keep_default_na=False, index_col=False
    )
    missing = REQUIRED_COLUMNS - set(rows.columns)
    if missing:
        raise DatasetError(f"dataset missing required columns: {sorted(missing)}")
    return rows


def _to_float(value: Optional[str]) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def project_emissions(
    rows: pd.DataFrame, selection: Selection = DEFAULT_SELECTION
) -> Dict[str, Tuple[float, ...]]:
    """Pick ``co2`` for every selected country and year.

    The first row for a (country, year) pair wins. Years are compared as text,
    the way they appear in the CSV. Absent or non-numeric values become 0.0.
    """
    first = rows.drop_duplicates(subset=["country", "year"], keep="first")
    lookup = dict(zip(zip(first["country"], first["year"]), first["co2"]))
    return {
        country: tuple(_to_float(lookup.get((country, str(year)))) for year in selection.years)
        for country in selection.countries
    }


def fallback_table() -> Dict[str, Tuple[float, ...]]:
    return dict(FALLBACK_TABLE)


def acquire(selection: Selection = DEFAULT_SELECTION) -> AcquisitionResult:
    """Build the chart data; never raises.

    Freshness and dataset failures are independent: a failed commit lookup
    only turns the stamp into ``UNKNOWN``, a failed download only swaps in the
    fallback table.
    """
    last_updated = fetch_last_updated()

    try:
        rows = fetch_dataset()
        table = project_emissions(rows, selection)
    except Exception as exc:
        logger.warning("Using fallback data, dataset unavailable: %s", exc)
        return AcquisitionResult(
            years=selection.years,
            table=fallback_table(),
            last_updated=last_updated,
            source=FALLBACK,
        )

    logger.info(
        "Projected %d countries x %d years from %d rows",
        len(table),
        len(selection.years),
        len(rows),
    )
    return AcquisitionResult(
        years=selection.years, table=table, last_updated=last_updated, source=LIVE
    )
