"""
dataset.py
----------

Core data container for flustate.

defines:
- FluSeries: a univariate, regularly sampled surveillance series
  (e.g. the weekly Google Flu Trends index for one region)

Notes
-----
- Values are stored as a NumPy float array; NaN marks a missing week.
- Convert to jax.numpy (jnp) arrays only when passing into models or
  inference engines that require JAX.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from flustate.errors import LengthMismatch


class FluSeries:
    """
    Time-indexed observations for one region.

    Attributes
    ----------
    dates : list of str
        Time labels (ISO dates for Flu Trends data), one per value.
    values : np.ndarray, shape (n_time,)
        Observations; NaN where unavailable.
    region : str
        Region name (CSV column the series came from).
    scale : str
        ``"natural"`` or ``"log"``.
    """

    def __init__(
        self,
        dates: Sequence[str],
        values: Sequence[float],
        region: str = "",
        scale: str = "natural",
    ) -> None:
        values = np.asarray(values, dtype=float)
        if values.ndim != 1:
            raise ValueError(f"values must be 1D, got shape {values.shape}")
        if len(dates) != values.shape[0]:
            raise LengthMismatch(values.shape[0], len(dates), what="dates")
        self.dates: list[str] = [str(d) for d in dates]
        self.values = values
        self.region = region
        self.scale = scale

    @classmethod
    def from_arrays(cls, values: Sequence[float], *, region: str = "") -> FluSeries:
        """Construct a series labelled 1..n (for synthetic data)."""
        values = np.asarray(values, dtype=float)
        return cls([str(i + 1) for i in range(values.shape[0])], values, region=region)

    def __len__(self) -> int:
        """Return number of time steps."""
        return int(self.values.shape[0])

    def __repr__(self) -> str:
        return (
            f"FluSeries(region={self.region!r}, n={len(self)}, "
            f"missing={self.n_missing}, scale={self.scale!r})"
        )

    @property
    def n_missing(self) -> int:
        return int(np.isnan(self.values).sum())

    @property
    def observed_mask(self) -> np.ndarray:
        return ~np.isnan(self.values)

    def log(self) -> FluSeries:
        """
        Return the series on the log scale.

        Raises
        ------
        ValueError
            If the series is already on the log scale or holds a
            non-positive value.
        """
        if self.scale == "log":
            raise ValueError("series is already on the log scale")
        observed = self.values[self.observed_mask]
        if np.any(observed <= 0):
            raise ValueError("log transform needs strictly positive values")
        return FluSeries(self.dates, np.log(self.values), region=self.region, scale="log")

    def with_values(self, values: Sequence[float]) -> FluSeries:
        """Copy of this series with the same dates and different values."""
        return FluSeries(self.dates, values, region=self.region, scale=self.scale)

    def tail(self, n: int) -> FluSeries:
        """Return the last n time steps as a new series."""
        return FluSeries(self.dates[-n:], self.values[-n:], region=self.region, scale=self.scale)

    def copy(self) -> FluSeries:
        return FluSeries(list(self.dates), self.values.copy(), region=self.region, scale=self.scale)
