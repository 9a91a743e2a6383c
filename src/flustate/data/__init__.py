"""
flustate.data
=============

submodule for handling surveillance time series.

Includes:
- dataset: FluSeries container
- holdout: withhold observations for forecast evaluation
- io: Google Flu Trends loader, CSV save/load
"""

from .dataset import FluSeries
from .holdout import HeldOutSplit, hold_out, hold_out_every, hold_out_last
from .io import load_flu_trends_csv, load_series_csv, save_series_csv

__all__ = [
    "FluSeries",
    "HeldOutSplit",
    "hold_out",
    "hold_out_last",
    "hold_out_every",
    "load_flu_trends_csv",
    "load_series_csv",
    "save_series_csv",
]
