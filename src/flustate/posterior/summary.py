"""
summary.py
----------

Turn posterior draws into credible bands and parameter summaries.

Provides:
- extract_group : ordered columns of a vector-valued node (e.g. latent state x)
- credible_band : per-column median and two-sided credible interval
- CredibleBand : aligned (lower, median, upper) sequences
- parameter_summary / print_parameter_summary : scalar parameter statistics
- parameter_correlation : posterior correlation between scalar parameters

Examples
--------
>>> import jax.numpy as jnp
>>> from flustate.posterior import credible_band, extract_group
>>> x = extract_group(samples, "x", time_index=series.dates)
>>> band = credible_band(x, probs=(0.025, 0.975), transform=jnp.exp)
>>> band.lower.shape == band.median.shape == (len(series),)
True

Notes
-----
Transforms are applied to the draws *before* quantiles are taken. For a
monotonic transform, the order statistics of the transformed draws are the
transformed order statistics, so the band lands on the natural scale.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

import jax.numpy as jnp

from flustate.errors import InsufficientDraws, InvalidProbability, LengthMismatch
from flustate.posterior.sample_matrix import SampleMatrix, VariableGroup
from flustate.utils.math import quantile, validate_probs

Transform = Callable[[jnp.ndarray], jnp.ndarray]


@dataclass(frozen=True)
class CredibleBand:
    """
    Median and two-sided credible interval at each time step.

    Attributes
    ----------
    lower, median, upper : jnp.ndarray, shape (n,)
        Aligned order statistics; lower <= median <= upper elementwise.
    probs : tuple of float
        Tail probabilities (lower, upper) used to build the band.
    time_index : sequence, optional
        Labels for the n positions (e.g. dates).
    name : str, optional
        Name of the node the band summarizes.
    """

    lower: jnp.ndarray
    median: jnp.ndarray
    upper: jnp.ndarray
    probs: tuple[float, float] = (0.025, 0.975)
    time_index: Sequence[Any] | None = field(default=None, compare=False)
    name: str | None = None

    def __post_init__(self):
        n = len(self.median)
        if len(self.lower) != n or len(self.upper) != n:
            raise LengthMismatch(n, len(self.lower), what="band bounds")
        if self.time_index is not None and len(self.time_index) != n:
            raise LengthMismatch(n, len(self.time_index))

    def __len__(self) -> int:
        return len(self.median)

    @property
    def mass(self) -> float:
        """Probability mass inside the interval (e.g. 0.95)."""
        return self.probs[1] - self.probs[0]

    @property
    def width(self) -> jnp.ndarray:
        return self.upper - self.lower

    def contains(self, values) -> jnp.ndarray:
        """Elementwise test ``lower <= values <= upper``."""
        values = jnp.asarray(values)
        if values.shape != self.median.shape:
            raise LengthMismatch(len(self), values.shape[0] if values.ndim else 0, what="values")
        return (self.lower <= values) & (values <= self.upper)

    def with_time_index(self, time_index: Sequence[Any]) -> CredibleBand:
        """Return a copy labelled with ``time_index`` (checked for length)."""
        return CredibleBand(
            lower=self.lower,
            median=self.median,
            upper=self.upper,
            probs=self.probs,
            time_index=time_index,
            name=self.name,
        )


def extract_group(
    matrix: SampleMatrix | Mapping[str, Sequence[float]],
    prefix: str,
    *,
    time_index: Sequence[Any] | None = None,
) -> VariableGroup:
    """
    Select the columns ``prefix[1], prefix[2], ...`` ordered by index.

    Parameters
    ----------
    matrix : SampleMatrix or mapping of name -> draws
        Posterior draws.
    prefix : str
        Group name. The match is anchored at the start of the column name
        and must be followed directly by ``[<int>]``: ``"x"`` selects
        ``x[3]`` but never ``max[3]`` or ``x_obs[3]``.
    time_index : sequence, optional
        Time labels the group must align with.

    Returns
    -------
    VariableGroup
        Columns ordered by ascending index.

    Raises
    ------
    NoMatchingColumns
        If no column matches.
    LengthMismatch
        If ``time_index`` is given and has a different length than the group.
    """
    if not isinstance(matrix, SampleMatrix):
        matrix = SampleMatrix.from_mapping(matrix)
    return matrix.group(prefix, time_index=time_index)


def credible_band(
    columns,
    probs: Sequence[float] = (0.025, 0.975),
    transform: Transform | None = None,
    *,
    time_index: Sequence[Any] | None = None,
    name: str | None = None,
) -> CredibleBand:
    """
    Per-column median and credible interval of (transformed) draws.

    Parameters
    ----------
    columns : VariableGroup, array, or sequence of arrays
        Ordered columns of draws. A 2D array is read as (n_draws, n_columns);
        a 1D array or a flat sequence of numbers is a single column; a
        sequence of 1D arrays may hold columns of different lengths.
    probs : pair of float, default=(0.025, 0.975)
        Lower and upper tail probabilities. The median (0.5) is always added.
    transform : callable, optional
        Elementwise monotonic transform applied to every draw before the
        quantiles are computed (e.g. ``jnp.exp`` to undo a log transform).
    time_index : sequence, optional
        Labels for the columns; must match their number.
    name : str, optional
        Name stored on the band. Defaults to the group name.

    Returns
    -------
    CredibleBand

    Raises
    ------
    InvalidProbability
        If ``probs`` is not a pair or a probability is outside [0, 1].
    InsufficientDraws
        If a column holds no draws.
    LengthMismatch
        If ``time_index`` does not match the number of columns.

    Notes
    -----
    Quantiles use linear interpolation between order statistics ("type 7").
    A column with a single draw yields a zero-width band at that draw.
    """
    if len(probs) != 2:
        raise InvalidProbability(f"probs must be a (lower, upper) pair, got {tuple(probs)}")
    validate_probs(probs)
    lo_p, hi_p = sorted(float(p) for p in probs)
    levels = (lo_p, 0.5, hi_p)

    if isinstance(columns, VariableGroup):
        name = name or columns.name
        cols = [columns.draws]
    else:
        cols = _as_columns(columns)

    if transform is None:
        transform = _identity

    if len(cols) == 1 and cols[0].ndim == 2:
        stats = quantile(transform(cols[0]), levels)
    elif cols:
        stats = jnp.stack([quantile(transform(c), levels) for c in cols], axis=1)
    else:
        stats = jnp.zeros((3, 0))

    lower, median, upper = stats[0], stats[1], stats[2]
    # keep the ordering exact under floating-point interpolation
    lower = jnp.minimum(lower, median)
    upper = jnp.maximum(upper, median)

    if time_index is not None and len(time_index) != median.shape[0]:
        raise LengthMismatch(median.shape[0], len(time_index))

    if median.shape[0] and bool(jnp.any(lower == upper)):
        n_flat = int(jnp.sum(lower == upper))
        warnings.warn(
            f"{n_flat} of {median.shape[0]} columns have a zero-width band",
            stacklevel=2,
        )

    return CredibleBand(
        lower=lower,
        median=median,
        upper=upper,
        probs=(lo_p, hi_p),
        time_index=time_index,
        name=name,
    )


def parameter_summary(
    matrix: SampleMatrix,
    names: Sequence[str] | None = None,
    *,
    quantiles: tuple[float, ...] = (0.025, 0.25, 0.5, 0.75, 0.975),
    transforms: Mapping[str, Transform] | None = None,
) -> dict[str, dict[str, Any]]:
    """
    Compute summary statistics for scalar parameters.

    Parameters
    ----------
    matrix : SampleMatrix
        Posterior draws.
    names : sequence of str, optional
        Columns to summarize. Defaults to every ungrouped column
        (e.g. ``tau_obs``, ``tau_add``, ``beta_X``).
    quantiles : tuple of floats, default=(0.025, 0.25, 0.5, 0.75, 0.975)
        Quantiles to compute.
    transforms : mapping of name -> callable, optional
        Per-parameter transform applied to the draws first, e.g.
        ``{"tau_obs": precision_to_sd}`` to report standard deviations.

    Returns
    -------
    summary : dict[str, dict]
        For each parameter: ``"mean"``, ``"std"``, and ``"quantiles"``
        (a dict mapping probability to value).

    Examples
    --------
    >>> summary = parameter_summary(samples, transforms={"tau_add": precision_to_sd})
    >>> print(
    ...     f"process sd: {summary['tau_add']['mean']:.3f} "
    ...     f"[{summary['tau_add']['quantiles'][0.025]:.3f}, "
    ...     f"{summary['tau_add']['quantiles'][0.975]:.3f}]"
    ... )
    """
    names = matrix.scalar_names if names is None else list(names)
    transforms = dict(transforms or {})

    summary = {}
    for param_name in names:
        draws = matrix.column(param_name)
        if param_name in transforms:
            draws = transforms[param_name](draws)
        values = quantile(draws, quantiles)
        summary[param_name] = {
            "mean": float(jnp.mean(draws)),
            "std": float(jnp.std(draws, ddof=1)) if draws.shape[0] > 1 else 0.0,
            "quantiles": {q: float(v) for q, v in zip(quantiles, values)},
        }
    return summary


def print_parameter_summary(
    matrix: SampleMatrix,
    names: Sequence[str] | None = None,
    *,
    transforms: Mapping[str, Transform] | None = None,
) -> None:
    """
    Print a human-readable parameter summary.

    Examples
    --------
    >>> print_parameter_summary(samples)
    Parameter Summary (3000 draws, 3 chains):

    tau_add:
      Mean: 62.418 ± 11.204
      95% CI: [43.117, 86.930]
    """
    summary = parameter_summary(matrix, names, transforms=transforms)

    print(f"Parameter Summary ({len(matrix)} draws, {matrix.n_chains} chains):\n")

    for param_name, stats in summary.items():
        q = stats["quantiles"]
        print(f"{param_name}:")
        print(f"  Mean: {stats['mean']:.3f} ± {stats['std']:.3f}")
        print(f"  95% CI: [{q[0.025]:.3f}, {q[0.975]:.3f}]")
        print()


def parameter_correlation(
    matrix: SampleMatrix,
    names: Sequence[str] | None = None,
) -> tuple[list[str], jnp.ndarray]:
    """
    Posterior (Pearson) correlation between scalar parameters.

    Strong correlation between e.g. ``tau_obs`` and ``tau_add`` indicates the
    data cannot separate observation error from process error.

    Returns
    -------
    names : list of str
        Row/column order of the matrix.
    corr : jnp.ndarray, shape (k, k)
    """
    names = matrix.scalar_names if names is None else list(names)
    if len(names) < 2:
        raise ValueError(f"need at least two parameters to correlate, got {names}")
    if len(matrix) < 2:
        raise InsufficientDraws("need at least two draws to compute correlations")
    draws = jnp.stack([matrix.column(n) for n in names], axis=0)
    return names, jnp.corrcoef(draws)


def _identity(x):
    return x


def _as_columns(columns) -> list[jnp.ndarray]:
    if hasattr(columns, "ndim"):
        arr = jnp.asarray(columns)
        if arr.ndim in (1, 2):
            return [arr]
        raise ValueError(f"columns must be 1D or 2D, got shape {arr.shape}")
    cols = [jnp.asarray(c) for c in columns]
    if cols and all(c.ndim == 0 for c in cols):
        # flat list of draws
        return [jnp.stack(cols)]
    return [c.reshape(-1) for c in cols]
