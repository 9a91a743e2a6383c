"""
diagnostics.py
--------------

Convergence diagnostics for MCMC output.

Provides:
- rhat : Gelman-Rubin potential scale reduction factor
- effective_sample_size : autocorrelation-adjusted number of draws
- convergence_report : both diagnostics for every scalar column

Both diagnostics take draws arranged as (n_chains, n_draws_per_chain);
SampleMatrix.by_chain(name) returns exactly that layout.

References
----------
[1] Gelman, A., et al. (2013). Bayesian Data Analysis, 3rd ed., ch. 11.
[2] Geyer, C. J. (1992). Practical Markov chain Monte Carlo.
    Statistical Science, 7(4), 473-483.
"""

from __future__ import annotations

import warnings
from typing import Sequence

import jax.numpy as jnp
import numpy as np

from flustate.posterior.sample_matrix import SampleMatrix

RHAT_THRESHOLD = 1.1


def _check_chains(chains) -> jnp.ndarray:
    chains = jnp.asarray(chains, dtype=jnp.float32)
    if chains.ndim == 1:
        chains = chains[None, :]
    if chains.ndim != 2:
        raise ValueError(f"chains must have shape (n_chains, n_draws), got {chains.shape}")
    if chains.shape[1] < 2:
        raise ValueError("need at least two draws per chain")
    return chains


def rhat(chains) -> float:
    """
    Compute the Gelman-Rubin R-hat convergence diagnostic.

    Parameters
    ----------
    chains : array, shape (n_chains, n_draws)
        Draws of one scalar quantity, one row per chain.

    Returns
    -------
    float
        Potential scale reduction factor. Values near 1 indicate the
        chains agree; values above ~1.1 indicate they have not mixed.

    Raises
    ------
    ValueError
        With fewer than two chains or two draws per chain.

    Notes
    -----
    R-hat = sqrt(var_plus / W), where W is the mean within-chain variance,
    B the between-chain variance of chain means, and
    var_plus = (n - 1)/n * W + B/n.
    Identical constant chains return 1.0.
    """
    chains = _check_chains(chains)
    m, n = chains.shape
    if m < 2:
        raise ValueError("R-hat needs at least two chains")

    chain_means = jnp.mean(chains, axis=1)
    within = float(jnp.mean(jnp.var(chains, axis=1, ddof=1)))
    between = float(n * jnp.var(chain_means, ddof=1))

    if within == 0.0:
        return 1.0 if between == 0.0 else float("inf")
    var_plus = (n - 1) / n * within + between / n
    return float(np.sqrt(var_plus / within))


def effective_sample_size(chains) -> float:
    """
    Estimate effective sample size (ESS) to calculate the number of
    independent draws that correlated MCMC chains are equivalent to.

    Parameters
    ----------
    chains : array, shape (n_chains, n_draws) or (n_draws,)
        Draws of one scalar quantity.

    Returns
    -------
    float
        ESS, at most n_chains * n_draws for well-mixed independent draws
        (it can exceed that for antithetic chains).

    Notes
    -----
    Autocorrelations are averaged across chains via the FFT and combined
    with the between-chain variance as in [1]. The sum of autocorrelations
    is truncated with Geyer's initial positive sequence [2]: lags are
    summed in pairs until a pair sum turns negative.
    """
    chains = _check_chains(chains)
    m, n = chains.shape

    centered = chains - jnp.mean(chains, axis=1, keepdims=True)
    n_fft = int(2 ** np.ceil(np.log2(2 * n)))
    spectrum = jnp.fft.rfft(centered, n=n_fft, axis=1)
    acov = jnp.fft.irfft(spectrum * jnp.conj(spectrum), n=n_fft, axis=1)[:, :n] / n
    acov = np.asarray(acov, dtype=float)

    chain_var = acov[:, 0] * n / (n - 1.0)
    within = float(np.mean(chain_var))
    if within == 0.0:
        return float(m * n)
    var_plus = within * (n - 1.0) / n
    if m > 1:
        var_plus += float(np.var(np.asarray(jnp.mean(chains, axis=1)), ddof=1))

    rho = 1.0 - (within - np.mean(acov, axis=0)) / var_plus
    rho[0] = 1.0

    # Geyer initial positive sequence over pairs (rho[2k] + rho[2k+1])
    tau = -1.0
    for k in range(0, n - 1, 2):
        pair = rho[k] + rho[k + 1]
        if pair < 0.0:
            break
        tau += 2.0 * pair

    tau = max(tau, 1.0 / np.log10(m * n)) if m * n > 1 else 1.0
    return float(m * n / tau)


def convergence_report(
    matrix: SampleMatrix,
    names: Sequence[str] | None = None,
    *,
    threshold: float = RHAT_THRESHOLD,
) -> dict[str, dict[str, float]]:
    """
    R-hat and ESS for scalar columns of a multi-chain sample matrix.

    Parameters
    ----------
    matrix : SampleMatrix
        Draws from at least two chains of equal length.
    names : sequence of str, optional
        Columns to check. Defaults to the ungrouped (scalar) columns.
    threshold : float, default=1.1
        R-hat above which a warning is emitted.

    Returns
    -------
    dict
        ``{name: {"rhat": float, "ess": float}}``
    """
    names = matrix.scalar_names if names is None else list(names)

    report = {}
    for name in names:
        chains = matrix.by_chain(name)
        report[name] = {
            "rhat": rhat(chains),
            "ess": effective_sample_size(chains),
        }

    unconverged = sorted(n for n, r in report.items() if r["rhat"] > threshold)
    if unconverged:
        warnings.warn(
            f"R-hat above {threshold} for {unconverged}; "
            "run the sampler longer or discard more burn-in",
            stacklevel=2,
        )
    return report
