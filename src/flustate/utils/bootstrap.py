"""
bootstrap.py
------------

Bootstrap resampling for MCMC starting values.

Each chain of the external sampler should start from a different, but
plausible, point. We resample the observed series with replacement and
derive moment-based precisions from each resample:

- tau_add = 1 / var(diff(y*))   (process precision)
- tau_obs = 5 / var(y*)         (observation precision)

The factor 5 encodes the prior belief that observation error is a fraction
of the total variability.

Notes
-----
- Missing observations (NaN, including held-out points) are dropped before
  resampling.
- The resampling is driven only by the PRNG key that is passed in.

Examples
--------
>>> from flustate.utils.bootstrap import bootstrap_initial_values
>>> from flustate.utils.rng import seed
>>> inits = bootstrap_initial_values(series.log().values, n_chains=3, key=seed(0))
>>> inits[0]
{'tau_add': 31.4..., 'tau_obs': 10.2...}

References
----------
Efron, B., & Tibshirani, R. J. (1994). An introduction to the bootstrap.
CRC press.
"""

from __future__ import annotations

import math
from typing import Any

import jax.numpy as jnp
import jax.random as jr

OBS_PRECISION_FACTOR = 5.0


def bootstrap_initial_values(
    y,
    n_chains: int,
    *,
    key: Any,
    obs_precision_factor: float = OBS_PRECISION_FACTOR,
) -> list[dict[str, float]]:
    """
    Bootstrap per-chain initial precisions from an observed series.

    Parameters
    ----------
    y : array-like, shape (n_time,)
        Observations on the model scale (e.g. log flu index). NaN marks
        missing values.
    n_chains : int
        Number of chains (one init mapping each).
    key : jax.Array
        PRNG key; the result is a deterministic function of it.
    obs_precision_factor : float, default=5.0
        Numerator of the observation-precision moment estimate.

    Returns
    -------
    list of dict
        One ``{"tau_add": float, "tau_obs": float}`` mapping per chain.

    Raises
    ------
    ValueError
        If fewer than 3 observations are available or n_chains < 1.
    """
    if n_chains < 1:
        raise ValueError(f"n_chains must be >= 1, got {n_chains}")

    y = jnp.asarray(y, dtype=jnp.float32)
    observed = y[~jnp.isnan(y)]
    n_obs = observed.shape[0]
    if n_obs < 3:
        raise ValueError(
            f"need at least 3 observed values to bootstrap initial values, got {n_obs}"
        )

    inits = []
    for _ in range(n_chains):
        key, subkey = jr.split(key)
        indices = jr.randint(subkey, (n_obs,), 0, n_obs)
        y_boot = observed[indices]

        var_diff = jnp.var(jnp.diff(y_boot), ddof=1)
        var_level = jnp.var(y_boot, ddof=1)
        inits.append(
            {
                "tau_add": _safe_precision(1.0, var_diff),
                "tau_obs": _safe_precision(obs_precision_factor, var_level),
            }
        )
    return inits


def _safe_precision(numerator: float, variance) -> float:
    """
    numerator / variance, falling back to 1.0 for a zero-variance resample.

    A resample that repeats a single value has zero variance; the sampler
    would reject an infinite precision.
    """
    variance = float(variance)
    if variance <= 0.0 or not math.isfinite(variance):
        return 1.0
    return float(numerator / variance)
