"""Render the CO2 emissions line chart as a standalone HTML page.

- Pulls the emissions table and freshness stamp from ``co2_data.acquire``.
- Draws one line per country with plotly, captioned with the data source and
  the date the dataset was last updated.
- Writes ``co2_chart.html`` next to where it is run.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Union

import plotly.graph_objects as go

from co2_data import AcquisitionResult, acquire

logger = logging.getLogger(__name__)

OUTPUT_HTML = Path("co2_chart.html")

TITLE = "CO2 Emissions Trends (1990-2023)"
X_AXIS_TITLE = "Year"
Y_AXIS_TITLE = "CO2 Emissions (Million Tonnes)"
SOURCE_URL = "https://ourworldindata.org/co2-and-greenhouse-gas-emissions"

COUNTRY_RGB = {
    "United States": (75, 192, 192),
    "China": (255, 99, 132),
    "India": (54, 162, 235),
    "Germany": (255, 206, 86),
}


class UnknownCountryError(KeyError):
    """A country has no colour assigned."""


def country_color(country: str, opacity: float = 1.0) -> str:
    try:
        r, g, b = COUNTRY_RGB[country]
    except KeyError:
        raise UnknownCountryError(f"no colour configured for {country!r}") from None
    return f"rgba({r}, {g}, {b}, {opacity})"


def caption(last_updated: str) -> str:
    return (
        f"Data sourced from Our World in Data ({SOURCE_URL}). "
        f"Last updated: {last_updated}."
    )


def build_figure(result: AcquisitionResult) -> go.Figure:
    """One line per country, x axis labelled with the selected years.

    A series shorter than the year list (the fallback table) is drawn against
    the leading labels only.
    """
    labels = [str(year) for year in result.years]
    fig = go.Figure()
    for country, values in result.table.items():
        if len(values) != len(labels):
            logger.warning(
                "%s has %d values for %d years", country, len(values), len(labels)
            )
        fig.add_trace(
            go.Scatter(
                x=labels[: len(values)],
                y=list(values),
                name=country,
                mode="lines+markers",
                line=dict(color=country_color(country), shape="spline", smoothing=0.8),
                marker=dict(
                    size=10,
                    color=country_color(country, 0.2),
                    line=dict(color=country_color(country), width=2),
                ),
            )
        )

    fig.update_layout(
        title=dict(text=f"{TITLE}<br><sup>{caption(result.last_updated)}</sup>", x=0.5),
        xaxis=dict(title=X_AXIS_TITLE, type="category", categoryorder="array", categoryarray=labels),
        yaxis=dict(title=Y_AXIS_TITLE, rangemode="tozero"),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="center", x=0.5),
        hovermode="x unified",
    )
    return fig


def write_chart(fig: go.Figure, path: Union[str, Path] = OUTPUT_HTML) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(path), include_plotlyjs=True, full_html=True)
    return path


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        stream=sys.stdout,
    )
    result = acquire()
    path = write_chart(build_figure(result))
    print(
        f"Wrote {path} ({len(result.table)} countries, {result.source} data, "
        f"last updated {result.last_updated})"
    )


if __name__ == "__main__":
    main()
