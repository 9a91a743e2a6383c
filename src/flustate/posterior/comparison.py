"""
comparison.py
-------------

Held-out evaluation of credible bands.

In a state-space model almost every fitted point is a *state estimate*: the
observation at that time step informed the posterior. Only time steps whose
observation was withheld before fitting are genuine predictions. Metrics
here are therefore computed over the held-out indices only; nothing in this
module scores the full series.

Examples
--------
>>> split = hold_out_last(series.values, 12)
>>> # ... fit on split.fit_values, build `band` on the natural scale ...
>>> result = compare_bands(band, split.observed, split.indices)
>>> result.coverage
0.9166...
>>> results = compare_models({"random walk": rw_band, "dlm": dlm_band},
...                          split.observed, split.indices)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

import jax.numpy as jnp

from flustate.errors import LengthMismatch
from flustate.posterior.summary import CredibleBand


@dataclass(frozen=True)
class HeldOutPoint:
    """One row of a held-out comparison."""

    index: int
    label: Any
    observed: float
    median: float
    lower: float
    upper: float
    within: bool

    @property
    def residual(self) -> float:
        """observed - predicted median"""
        return self.observed - self.median


@dataclass(frozen=True)
class HeldOutComparison:
    """
    Per-point residual table for the held-out time steps.

    Attributes
    ----------
    points : tuple of HeldOutPoint
        One row per held-out index, in the order the indices were given.
    mass : float
        Nominal probability mass of the credible band (e.g. 0.95).
    """

    points: tuple[HeldOutPoint, ...]
    mass: float

    def __len__(self) -> int:
        return len(self.points)

    @property
    def coverage(self) -> float:
        """Fraction of held-out observations inside their credible band."""
        return sum(p.within for p in self.points) / len(self.points)

    @property
    def rmse(self) -> float:
        return math.sqrt(sum(p.residual**2 for p in self.points) / len(self.points))

    @property
    def bias(self) -> float:
        """Mean residual; positive when the model under-predicts."""
        return sum(p.residual for p in self.points) / len(self.points)

    @property
    def mean_width(self) -> float:
        return sum(p.upper - p.lower for p in self.points) / len(self.points)

    def as_records(self) -> list[dict[str, Any]]:
        """Rows as plain dicts (e.g. for csv.DictWriter)."""
        return [
            {
                "index": p.index,
                "label": p.label,
                "observed": p.observed,
                "median": p.median,
                "lower": p.lower,
                "upper": p.upper,
                "within": p.within,
                "residual": p.residual,
            }
            for p in self.points
        ]


def compare_bands(
    predicted: CredibleBand,
    observed: CredibleBand | Sequence[float],
    held_out_indices: Iterable[int],
    *,
    time_index: Sequence[Any] | None = None,
) -> HeldOutComparison:
    """
    Compare a predicted band with observed values at held-out time steps.

    Parameters
    ----------
    predicted : CredibleBand
        Band from the model fit (on the same scale as ``observed``).
    observed : CredibleBand or sequence of float
        Reference values for every time step. If a CredibleBand is given
        (e.g. a band built from the true series), its median is used.
        Only the held-out positions are read.
    held_out_indices : iterable of int
        0-based positions that were set to missing before fitting.
    time_index : sequence, optional
        Labels for the rows. Defaults to ``predicted.time_index``, then to
        the index itself.

    Returns
    -------
    HeldOutComparison

    Raises
    ------
    LengthMismatch
        If ``observed`` or ``time_index`` is not aligned with ``predicted``.
    ValueError
        If no indices are given, an index is out of range or repeated, or an
        observed value at a held-out index is missing (NaN).
    """
    n = len(predicted)
    obs = observed.median if isinstance(observed, CredibleBand) else jnp.asarray(observed, dtype=jnp.float32)
    if obs.shape[0] != n:
        raise LengthMismatch(n, obs.shape[0], what="observed values")

    labels = time_index if time_index is not None else predicted.time_index
    if labels is not None and len(labels) != n:
        raise LengthMismatch(n, len(labels))

    indices = [int(i) for i in held_out_indices]
    if not indices:
        raise ValueError("held_out_indices is empty; nothing to compare")
    if len(set(indices)) != len(indices):
        raise ValueError("held_out_indices contains duplicates")

    points = []
    for i in indices:
        if not 0 <= i < n:
            raise ValueError(f"held-out index {i} outside [0, {n})")
        value = float(obs[i])
        if math.isnan(value):
            raise ValueError(f"observed value at held-out index {i} is missing")
        lower = float(predicted.lower[i])
        upper = float(predicted.upper[i])
        points.append(
            HeldOutPoint(
                index=i,
                label=labels[i] if labels is not None else i,
                observed=value,
                median=float(predicted.median[i]),
                lower=lower,
                upper=upper,
                within=lower <= value <= upper,
            )
        )
    return HeldOutComparison(points=tuple(points), mass=predicted.mass)


def compare_models(
    bands: Mapping[str, CredibleBand],
    observed: CredibleBand | Sequence[float],
    held_out_indices: Iterable[int],
) -> dict[str, HeldOutComparison]:
    """Run compare_bands for several fitted models on the same held-out set."""
    indices = list(held_out_indices)
    return {name: compare_bands(band, observed, indices) for name, band in bands.items()}
