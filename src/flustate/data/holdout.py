"""
holdout.py
----------

Withhold observations from a fit so the fit can be scored on them later.

A held-out time step plays two roles that must stay apart:
- during fitting it is simply *missing* (NaN, passed to the sampler as NA),
  so the sampler predicts it from the rest of the series;
- afterwards its true value is the reference for compare_bands.

HeldOutSplit keeps the two apart: ``fit_values`` never contains the truth,
and the truth is only reachable through ``truth`` / ``observed``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np


@dataclass(frozen=True)
class HeldOutSplit:
    """
    Fitting input plus the withheld truth.

    Attributes
    ----------
    fit_values : np.ndarray, shape (n_time,)
        Series with every held-out position set to NaN.
    indices : tuple of int
        Held-out positions (0-based, ascending).
    truth : np.ndarray, shape (len(indices),)
        Original values at ``indices``.
    """

    fit_values: np.ndarray
    indices: tuple[int, ...]
    truth: np.ndarray

    def __len__(self) -> int:
        return len(self.indices)

    @property
    def observed(self) -> np.ndarray:
        """
        Full-length reference series for compare_bands.

        NaN everywhere except the held-out positions, which carry the truth.
        """
        ref = np.full(self.fit_values.shape, np.nan)
        ref[list(self.indices)] = self.truth
        return ref


def hold_out(values, indices: Iterable[int]) -> HeldOutSplit:
    """
    Withhold the observations at ``indices``.

    Parameters
    ----------
    values : array-like, shape (n_time,)
        Complete series.
    indices : iterable of int
        Positions to withhold. Negative indices count from the end.

    Returns
    -------
    HeldOutSplit

    Raises
    ------
    ValueError
        If no index is given, an index is out of range, or a withheld
        value is itself missing (there would be nothing to score against).
    """
    values = np.asarray(values, dtype=float)
    n = values.shape[0]
    idx = sorted({int(i) % n if -n <= int(i) < 0 else int(i) for i in indices})
    if not idx:
        raise ValueError("at least one index must be held out")
    bad = [i for i in idx if not 0 <= i < n]
    if bad:
        raise ValueError(f"held-out indices {bad} outside [0, {n})")

    truth = values[idx].copy()
    if np.isnan(truth).any():
        missing = [i for i, v in zip(idx, truth) if np.isnan(v)]
        raise ValueError(f"cannot hold out already-missing observations at {missing}")

    fit_values = values.copy()
    fit_values[idx] = np.nan
    return HeldOutSplit(fit_values=fit_values, indices=tuple(idx), truth=truth)


def hold_out_last(values, n: int) -> HeldOutSplit:
    """Withhold the final ``n`` observations (a simulated forecast)."""
    length = np.asarray(values).shape[0]
    if not 0 < n < length:
        raise ValueError(f"n must be in (0, {length}), got {n}")
    return hold_out(values, range(length - n, length))


def hold_out_every(values, step: int, *, offset: int = 0) -> HeldOutSplit:
    """Withhold every ``step``-th observation starting at ``offset``."""
    if step < 2:
        raise ValueError(f"step must be >= 2, got {step}")
    length = np.asarray(values).shape[0]
    return hold_out(values, range(offset, length, step))
