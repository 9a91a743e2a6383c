"""
map_posterior.py
----------------

Point-estimate posterior returned by MAPOptimizer.

MAPPosterior is a delta distribution at the maximum a posteriori
parameters. Its main job is to seed the external sampler: chains started
near the mode need less adaptation and burn-in than chains started from
moment-based guesses.
"""

from __future__ import annotations

from typing import Any

import jax.numpy as jnp
import jax.random as jr
import numpy as np


class MAPPosterior:
    """
    MAP (Maximum A Posteriori) posterior - delta distribution at θ_MAP.

    Parameters
    ----------
    params : dict
        MAP parameters: the latent state, ``log_tau_obs``, ``log_tau_add``
        and any process-mean coefficients.
    model : StateSpaceModel
        Model the parameters belong to.
    """

    def __init__(self, params: dict[str, jnp.ndarray], model: Any):
        self._params = params
        self._model = model

    @property
    def params(self) -> dict[str, jnp.ndarray]:
        """Return the MAP parameters (θ_MAP)."""
        return self._params

    @property
    def model(self):
        """Return the associated model."""
        return self._model

    @property
    def state(self) -> jnp.ndarray:
        """MAP latent state trajectory."""
        return self._params[self._model.state]

    @property
    def tau_obs(self) -> float:
        return float(jnp.exp(self._params["log_tau_obs"]))

    @property
    def tau_add(self) -> float:
        return float(jnp.exp(self._params["log_tau_add"]))

    def initial_values(self, n_chains: int, *, key: Any, jitter: float = 0.1) -> list[dict[str, Any]]:
        """
        Per-chain sampler starting values scattered around the mode.

        Parameters
        ----------
        n_chains : int
            Number of init mappings.
        key : jax.Array
            PRNG key for the jitter.
        jitter : float, default=0.1
            Standard deviation of the Gaussian perturbation, applied to the
            state, the log precisions and the coefficients.

        Returns
        -------
        list of dict
            Mappings in sampler node names (``x``, ``tau_obs``, ``tau_add``,
            ``beta_*``).
        """
        if n_chains < 1:
            raise ValueError(f"n_chains must be >= 1, got {n_chains}")
        inits = []
        for _ in range(n_chains):
            chain_init = {}
            for name, value in self._params.items():
                key, subkey = jr.split(key)
                perturbed = value + jitter * jr.normal(subkey, jnp.shape(value))
                if name.startswith("log_"):
                    chain_init[name[len("log_"):]] = float(jnp.exp(perturbed))
                elif jnp.ndim(perturbed) == 0:
                    chain_init[name] = float(perturbed)
                else:
                    chain_init[name] = np.asarray(perturbed, dtype=float)
            inits.append(chain_init)
        return inits
