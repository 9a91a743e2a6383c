"""
math.py
-------

Numerical helpers shared by the posterior summarizer.

Provides:
- quantile: linear-interpolation ("type 7") sample quantiles along axis 0
- validate_probs: range check for quantile probabilities
- precision_to_sd: map a precision (1/variance) to a standard deviation

All functions accept NumPy or JAX arrays and return JAX arrays.
"""

from __future__ import annotations

from typing import Sequence

import jax.numpy as jnp

from flustate.errors import InsufficientDraws, InvalidProbability


def validate_probs(probs: Sequence[float]) -> jnp.ndarray:
    """
    Check that every probability lies in [0, 1].

    Parameters
    ----------
    probs : sequence of float

    Returns
    -------
    jnp.ndarray
        The probabilities as a 1D array.

    Raises
    ------
    InvalidProbability
        If any probability is NaN or outside [0, 1].
    """
    out = []
    for p in probs:
        p = float(p)
        # NaN fails both comparisons
        if not 0.0 <= p <= 1.0:
            raise InvalidProbability(f"quantile probability must lie in [0, 1], got {p}")
        out.append(p)
    return jnp.asarray(out)


def quantile(draws, probs: Sequence[float]) -> jnp.ndarray:
    """
    Sample quantiles by linear interpolation between order statistics.

    For a sorted sample x(1) <= ... <= x(n) and probability p, the quantile
    sits at (1-based) position h = 1 + p * (n - 1) and is interpolated
    linearly between x(floor(h)) and x(floor(h) + 1). This is the default
    definition in R and NumPy ("type 7").

    Parameters
    ----------
    draws : array, shape (n_draws,) or (n_draws, n_columns)
        Samples; quantiles are taken along axis 0.
    probs : sequence of float
        Probabilities in [0, 1].

    Returns
    -------
    jnp.ndarray, shape (len(probs),) or (len(probs), n_columns)

    Raises
    ------
    InsufficientDraws
        If there are no draws.
    InvalidProbability
        If a probability lies outside [0, 1].

    Notes
    -----
    A single draw is its own quantile for every p (a zero-width band).
    """
    p = validate_probs(probs)
    x = jnp.asarray(draws)
    n = x.shape[0] if x.ndim > 0 else 0
    if n < 1:
        raise InsufficientDraws("cannot compute quantiles of zero draws")
    return jnp.quantile(x, p, axis=0, method="linear")


def precision_to_sd(tau):
    """Convert a precision (1/variance) to a standard deviation."""
    return 1.0 / jnp.sqrt(tau)
