"""
dlm.py
------

Dynamic linear model: a random walk whose expected next state is a linear
function of the current state and external covariates.

    mu[t] = x[t-1] + beta_Intercept + beta_X * x[t-1] + sum_c beta_c * c[t]
    x[t]  ~ N(mu[t], 1/tau_add)

beta_X < 0 pulls the state back towards an equilibrium (density
dependence); covariates (e.g. weekly minimum temperature) shift it.
With every coefficient at zero the model reduces to RandomWalk.
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

import jax.numpy as jnp
import numpy as np

from .base import DEFAULT_X_IC, StateSpaceModel
from .prior import Gamma, Normal

_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_.]*$")
_RESERVED = {"x", "y", "n", "t", "mu", "tau_obs", "tau_add"}

DEFAULT_BETA_PRIOR = Normal(mean=0.0, precision=0.001)


class DynamicLinearModel(StateSpaceModel):
    """
    State-space model with intercept, autoregressive term and covariates.

    Parameters
    ----------
    covariates : mapping of str -> sequence of float, optional
        Covariate series aligned with the observations (same length, no
        missing values). Names become JAGS data nodes and must be valid
        identifiers.
    intercept : bool, default=True
        Include beta_Intercept.
    autoregressive : bool, default=True
        Include beta_X * x[t-1].
    beta_prior : Normal, default=Normal(0, 0.001)
        Prior shared by all coefficients (vague).
    x_ic, tau_obs, tau_add
        See StateSpaceModel.

    Examples
    --------
    >>> model = DynamicLinearModel(covariates={"Tmin": tmin})
    >>> model.variable_names()
    ['x', 'tau_add', 'tau_obs', 'beta_Intercept', 'beta_X', 'beta_Tmin']
    """

    def __init__(
        self,
        covariates: Mapping[str, Sequence[float]] | None = None,
        *,
        intercept: bool = True,
        autoregressive: bool = True,
        beta_prior: Normal = DEFAULT_BETA_PRIOR,
        x_ic: Normal = DEFAULT_X_IC,
        tau_obs: Gamma = Gamma(1.0, 1.0),
        tau_add: Gamma = Gamma(1.0, 1.0),
    ) -> None:
        super().__init__(x_ic=x_ic, tau_obs=tau_obs, tau_add=tau_add)
        self.covariates: dict[str, np.ndarray] = {}
        for name, values in (covariates or {}).items():
            if not _IDENTIFIER.match(name) or name in _RESERVED:
                raise ValueError(f"invalid covariate name {name!r}")
            values = np.asarray(values, dtype=float)
            if values.ndim != 1:
                raise ValueError(f"covariate {name!r} must be 1D, got shape {values.shape}")
            if np.isnan(values).any():
                raise ValueError(f"covariate {name!r} has missing values")
            self.covariates[name] = values
        lengths = {v.shape[0] for v in self.covariates.values()}
        if len(lengths) > 1:
            raise ValueError(f"covariates have different lengths {sorted(lengths)}")

        self.intercept = intercept
        self.autoregressive = autoregressive
        self.beta_prior = beta_prior
        if not (intercept or autoregressive or self.covariates):
            raise ValueError("a DynamicLinearModel needs at least one term; use RandomWalk instead")

    def coefficient_priors(self) -> dict[str, Normal]:
        priors = {}
        if self.intercept:
            priors["beta_Intercept"] = self.beta_prior
        if self.autoregressive:
            priors["beta_X"] = self.beta_prior
        for name in self.covariates:
            priors[f"beta_{name}"] = self.beta_prior
        return priors

    def covariate_data(self, n: int) -> dict[str, np.ndarray]:
        for name, values in self.covariates.items():
            if values.shape[0] != n:
                raise ValueError(f"covariate {name!r} has length {values.shape[0]}, series has {n}")
        return dict(self.covariates)

    def mean_expression(self) -> str:
        s = self.state
        terms = [f"{s}[t-1]"]
        if self.intercept:
            terms.append("beta_Intercept")
        if self.autoregressive:
            terms.append(f"beta_X*{s}[t-1]")
        for name in self.covariates:
            terms.append(f"beta_{name}*{name}[t]")
        return " + ".join(terms)

    def process_mean(self, params, x_prev, covariates):
        mu = x_prev
        if self.intercept:
            mu = mu + params["beta_Intercept"]
        if self.autoregressive:
            mu = mu + params["beta_X"] * x_prev
        for name in self.covariates:
            mu = mu + params[f"beta_{name}"] * jnp.asarray(covariates[name], dtype=jnp.float32)
        return mu

    def __repr__(self) -> str:
        return (
            f"DynamicLinearModel(covariates={list(self.covariates)}, "
            f"intercept={self.intercept}, autoregressive={self.autoregressive})"
        )
