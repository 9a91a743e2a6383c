"""
base.py
-------

Base class for univariate Gaussian state-space models.

All models share the same skeleton:

    y[t] ~ N(x[t], 1/tau_obs)            t = 1..n    (data model)
    x[t] ~ N(mu[t], 1/tau_add)           t = 2..n    (process model)
    x[1] ~ x_ic prior
    tau_obs, tau_add ~ Gamma priors

Subclasses only describe the process mean mu[t] (and any coefficients it
uses). The model is kept as structured data and turned into JAGS text only
when the sampler asks for it (``to_jags``).

Connections
-----------
- JagsSampler calls to_jags(), data(), variable_names()
- MAPOptimizer calls init_params() and log_posterior()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import jax.numpy as jnp
import jax.random as jr
import numpy as np

from .prior import Gamma, Normal

Params = dict[str, jnp.ndarray]

DEFAULT_X_IC = Normal(mean=float(np.log(1000.0)), precision=100.0)


class StateSpaceModel(ABC):
    """
    Abstract Gaussian state-space model with a latent state ``x``.

    Parameters
    ----------
    x_ic : Normal
        Prior on the first latent state x[1].
    tau_obs : Gamma
        Prior on the observation precision.
    tau_add : Gamma
        Prior on the process precision.
    """

    state = "x"
    obs = "y"

    def __init__(
        self,
        x_ic: Normal = DEFAULT_X_IC,
        tau_obs: Gamma = Gamma(1.0, 1.0),
        tau_add: Gamma = Gamma(1.0, 1.0),
    ) -> None:
        self.x_ic = x_ic
        self.tau_obs = tau_obs
        self.tau_add = tau_add

    # ------------------------------------------------------------------
    # STRUCTURE: subclasses describe the process mean
    # ------------------------------------------------------------------
    @abstractmethod
    def mean_expression(self) -> str:
        """JAGS expression for the expected state at time t, given x[t-1]."""
        ...

    @abstractmethod
    def process_mean(self, params: Params, x_prev: jnp.ndarray, covariates: dict[str, jnp.ndarray]) -> jnp.ndarray:
        """
        JAX version of mean_expression, vectorized over t = 2..n.

        Parameters
        ----------
        params : dict
            Model parameters.
        x_prev : jnp.ndarray, shape (n - 1,)
            x[1..n-1].
        covariates : dict of jnp.ndarray, each shape (n - 1,)
            Covariate values at t = 2..n.
        """
        ...

    def coefficient_priors(self) -> dict[str, Normal]:
        """Priors of the process-mean coefficients (none by default)."""
        return {}

    def covariate_data(self, n: int) -> dict[str, np.ndarray]:
        """Covariates passed to the sampler as data (none by default)."""
        return {}

    # ------------------------------------------------------------------
    # SAMPLER BOUNDARY
    # ------------------------------------------------------------------
    def variable_names(self) -> list[str]:
        """Nodes the sampler should record."""
        return [self.state, "tau_add", "tau_obs", *self.coefficient_priors()]

    def data(self, y) -> dict[str, Any]:
        """
        Data mapping for the sampler.

        Parameters
        ----------
        y : array-like, shape (n,)
            Observations on the model scale; NaN marks missing (including
            held-out) time steps, which the sampler will impute.
        """
        y = np.asarray(y, dtype=float)
        if y.ndim != 1 or y.shape[0] < 2:
            raise ValueError(f"y must be 1D with at least 2 time steps, got shape {y.shape}")
        if np.isnan(y).all():
            raise ValueError("y has no observed values")
        return {self.obs: y, "n": int(y.shape[0]), **self.covariate_data(y.shape[0])}

    def to_jags(self) -> str:
        """Render the model in the JAGS modelling language."""
        s, o = self.state, self.obs
        mean = self.mean_expression()
        if mean == f"{s}[t-1]":
            process = [f"    {s}[t] ~ dnorm({s}[t-1], tau_add)"]
        else:
            process = [
                f"    mu[t] <- {mean}",
                f"    {s}[t] ~ dnorm(mu[t], tau_add)",
            ]

        lines = [
            "model{",
            "",
            "  #### Data Model",
            "  for(t in 1:n){",
            f"    {o}[t] ~ dnorm({s}[t], tau_obs)",
            "  }",
            "",
            "  #### Process Model",
            "  for(t in 2:n){",
            *process,
            "  }",
            "",
            "  #### Priors",
            f"  {s}[1] ~ {self.x_ic.to_jags()}",
            f"  tau_obs ~ {self.tau_obs.to_jags()}",
            f"  tau_add ~ {self.tau_add.to_jags()}",
        ]
        for name, prior in self.coefficient_priors().items():
            lines.append(f"  {name} ~ {prior.to_jags()}")
        lines.append("}")
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # JAX DENSITY (for MAP starting values)
    # ------------------------------------------------------------------
    def init_params(self, y, key: Any) -> Params:
        """
        Moment-based starting point for optimization.

        The latent state starts at the observations (missing steps linearly
        interpolated) plus a little noise from ``key``.
        """
        y = np.asarray(y, dtype=float)
        filled = _interpolate_missing(y)
        x = jnp.asarray(filled) + 0.01 * jr.normal(key, (filled.shape[0],))
        var_level = max(float(np.var(filled, ddof=1)), 1e-6)
        var_diff = max(float(np.var(np.diff(filled), ddof=1)), 1e-6)
        params = {
            self.state: x,
            "log_tau_obs": jnp.asarray(np.log(5.0 / var_level)),
            "log_tau_add": jnp.asarray(np.log(1.0 / var_diff)),
        }
        for name in self.coefficient_priors():
            params[name] = jnp.asarray(0.0)
        return params

    def log_posterior(self, params: Params, y) -> jnp.ndarray:
        """
        Unnormalized log posterior over (x, log precisions, coefficients).

        Missing observations (NaN) drop out of the data model. Precisions
        enter on the log scale with their Jacobian.
        """
        y = jnp.asarray(y, dtype=jnp.float32)
        observed = ~jnp.isnan(y)
        y_filled = jnp.where(observed, y, 0.0)

        x = params[self.state]
        log_tau_obs = params["log_tau_obs"]
        log_tau_add = params["log_tau_add"]
        tau_obs = jnp.exp(log_tau_obs)
        tau_add = jnp.exp(log_tau_add)

        n = y.shape[0]
        covariates = {k: jnp.asarray(v[1:]) for k, v in self.covariate_data(n).items()}
        mu = self.process_mean(params, x[:-1], covariates)

        lp_obs = jnp.sum(jnp.where(observed, 0.5 * log_tau_obs - 0.5 * tau_obs * (y_filled - x) ** 2, 0.0))
        lp_proc = jnp.sum(0.5 * log_tau_add - 0.5 * tau_add * (x[1:] - mu) ** 2)
        lp_prior = (
            self.x_ic.log_prob(x[0])
            + self.tau_obs.log_prob_log(log_tau_obs)
            + self.tau_add.log_prob_log(log_tau_add)
        )
        for name, prior in self.coefficient_priors().items():
            lp_prior = lp_prior + prior.log_prob(params[name])
        return lp_obs + lp_proc + lp_prior


def _interpolate_missing(y: np.ndarray) -> np.ndarray:
    observed = ~np.isnan(y)
    if not observed.any():
        raise ValueError("y has no observed values")
    t = np.arange(y.shape[0])
    return np.interp(t, t[observed], y[observed])
