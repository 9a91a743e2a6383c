"""
io.py
-----

I/O utilities for surveillance series.

Supports:
- Google Flu Trends country exports: a free-text preamble followed by a CSV
  table whose header starts with ``Date,`` and has one column per region
- a plain two-column ``date,value`` CSV for saved series

Notes
-----
Empty cells become NaN.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Union

import numpy as np

from .dataset import FluSeries

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def load_flu_trends_csv(path: PathLike, region: str = "Massachusetts") -> FluSeries:
    """
    Load one region from a Google Flu Trends export.

    Parameters
    ----------
    path : str or Path
        Export file (e.g. ``gflu_data.txt``).
    region : str, default="Massachusetts"
        Column to read.

    Returns
    -------
    FluSeries

    Raises
    ------
    ValueError
        If no ``Date,`` header line is found or the region column is absent.
    """
    with open(path, newline="") as f:
        lines = f.read().splitlines()

    try:
        start = next(i for i, line in enumerate(lines) if line.startswith("Date,"))
    except StopIteration:
        raise ValueError(f"{path}: no header line starting with 'Date,'") from None

    reader = csv.DictReader(lines[start:])
    if region not in (reader.fieldnames or []):
        raise ValueError(f"{path}: region {region!r} not in columns {reader.fieldnames}")

    dates, values = [], []
    for row in reader:
        if not row.get("Date"):
            continue
        dates.append(row["Date"])
        values.append(_parse_value(row[region]))

    series = FluSeries(dates, values, region=region)
    logger.info("loaded %d weeks for %s from %s (%d missing)", len(series), region, path, series.n_missing)
    return series


def save_series_csv(series: FluSeries, path: PathLike) -> None:
    """
    Save a series to a two-column CSV file.

    Parameters
    ----------
    series : FluSeries
    path : str or Path
    """
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["date", series.region or "value"])
        for d, v in zip(series.dates, series.values):
            writer.writerow([d, "" if np.isnan(v) else repr(float(v))])


def load_series_csv(path: PathLike) -> FluSeries:
    """
    Load a series written by save_series_csv.

    Parameters
    ----------
    path : str or Path

    Returns
    -------
    FluSeries
    """
    with open(path, newline="") as f:
        reader = csv.reader(f)
        header = next(reader)
        dates, values = [], []
        for row in reader:
            dates.append(row[0])
            values.append(_parse_value(row[1]))
    return FluSeries(dates, values, region=header[1] if header[1] != "value" else "")


def _parse_value(cell: str | None) -> float:
    cell = (cell or "").strip()
    return float(cell) if cell else float("nan")
