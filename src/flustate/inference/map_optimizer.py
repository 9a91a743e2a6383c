"""
map_optimizer.py
----------------

MAP (Maximum A Posteriori) optimizer using Optax.

Maximizes StateSpaceModel.log_posterior over the latent state, the log
precisions and any process-mean coefficients. The result is a point
estimate, used to start sampler chains near the posterior mode.

Connections
-----------
- Calls model.init_params(y, key) for the starting point and
  model.log_posterior(params, y) as the objective.
- Returns a MAPPosterior wrapping the MAP estimate.
"""

from __future__ import annotations

import logging

import jax
import optax

from flustate.inference.base import InferenceEngine, observations
from flustate.posterior.map_posterior import MAPPosterior
from flustate.utils.rng import seed as make_key

logger = logging.getLogger(__name__)


class MAPOptimizer(InferenceEngine):
    """
    MAP (Maximum A Posteriori) optimizer.

    Parameters
    ----------
    steps : int, default=2000
        Number of optimization steps.
    learning_rate : float, default=0.05
        Learning rate for the default optimizer (Adam).
    optimizer : optax.GradientTransformation, optional
        Optax optimizer to use instead of Adam.
    track_history : bool, default=False
        When True, record loss history during fitting.
    log_every : int, default=100
        Record every N steps (also records the last step).

    Notes
    -----
    - Loss function = negative log posterior.
    - Gradients computed with jax.grad.
    """

    def __init__(
        self,
        steps: int = 2000,
        learning_rate: float = 0.05,
        optimizer: optax.GradientTransformation | None = None,
        *,
        track_history: bool = False,
        log_every: int = 100,
    ):
        if steps < 1:
            raise ValueError(f"steps must be positive, got {steps}")
        self.steps = steps
        self.optimizer = optimizer or optax.adam(learning_rate=learning_rate)
        self.track_history = track_history
        self.log_every = max(1, int(log_every))
        # Exposed after fit() when tracking is enabled
        self.loss_steps: list[int] = []
        self.loss_history: list[float] = []

    def fit(self, model, y, *, init_params: dict | None = None, key=None) -> MAPPosterior:
        """
        Fit model parameters with MAP optimization.

        Parameters
        ----------
        model : StateSpaceModel
            Model instance.
        y : FluSeries or array-like
            Observations on the model scale; NaN marks missing values.
        init_params : dict | None, optional
            Starting parameters. If provided, takes precedence over key.
        key : jax.Array | None, optional
            PRNG key for the default starting point. If None, defaults to
            seed(0).

        Returns
        -------
        MAPPosterior
        """
        values = observations(y)
        model.data(values)  # validates shape and missingness

        if init_params is not None:
            params = init_params
        else:
            params = model.init_params(values, make_key(0) if key is None else key)
        opt_state = self.optimizer.init(params)

        def loss_fn(params):
            return -model.log_posterior(params, values)

        @jax.jit
        def step(params, opt_state):
            loss, grads = jax.value_and_grad(loss_fn)(params)
            updates, opt_state = self.optimizer.update(grads, opt_state, params)
            params = optax.apply_updates(params, updates)
            return params, opt_state, loss

        if self.track_history:
            self.loss_steps.clear()
            self.loss_history.clear()

        loss = None
        for i in range(self.steps):
            params, opt_state, loss = step(params, opt_state)
            if self.track_history and ((i % self.log_every == 0) or (i == self.steps - 1)):
                self.loss_steps.append(i)
                self.loss_history.append(float(loss))

        logger.info("MAP fit finished after %d steps (loss %.4f)", self.steps, float(loss))
        return MAPPosterior(params=params, model=model)

    def get_history(self) -> tuple[list[int], list[float]]:
        """Return (steps, losses) recorded during the last fit when tracking was enabled."""
        return self.loss_steps, self.loss_history
