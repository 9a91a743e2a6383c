"""
random_walk.py
--------------

Random-walk (local level) state-space model.

    y[t] ~ N(x[t], 1/tau_obs)
    x[t] ~ N(x[t-1], 1/tau_add)

The simplest model for a noisy series whose underlying level drifts: it
has no trend, seasonality or covariates, so forecasts are flat with
uncertainty growing with the horizon.
"""

from __future__ import annotations

from .base import StateSpaceModel


class RandomWalk(StateSpaceModel):
    """
    Random walk observed with Gaussian error.

    Parameters
    ----------
    x_ic, tau_obs, tau_add
        See StateSpaceModel.

    Examples
    --------
    >>> model = RandomWalk()
    >>> print(model.to_jags())  # doctest: +ELLIPSIS
    model{
    ...
    """

    def mean_expression(self) -> str:
        return f"{self.state}[t-1]"

    def process_mean(self, params, x_prev, covariates):
        return x_prev

    def __repr__(self) -> str:
        return f"RandomWalk(x_ic={self.x_ic}, tau_obs={self.tau_obs}, tau_add={self.tau_add})"
