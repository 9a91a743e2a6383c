"""
prior.py
--------

Prior distributions for state-space model parameters.

Each prior is a small frozen dataclass that knows how to
- render itself in the JAGS grammar (``to_jags``), and
- evaluate its log density in JAX (``log_prob``, up to a constant),
so the same object drives both the external sampler and the in-process
MAP fit used for starting values.

Precision parameterization
--------------------------
JAGS parameterizes the normal by precision (1/variance); we follow it so a
prior reads identically in Python and in the rendered model text.
"""

from __future__ import annotations

from dataclasses import dataclass

import jax.numpy as jnp


def format_number(value: float) -> str:
    """Render a number for model text (up to 10 significant digits)."""
    return f"{float(value):.10g}"


@dataclass(frozen=True)
class Normal:
    """
    Normal prior N(mean, 1/precision).

    Parameters
    ----------
    mean : float, default=0.0
    precision : float, default=1.0
        Inverse variance; must be positive.
    """

    mean: float = 0.0
    precision: float = 1.0

    def __post_init__(self):
        if self.precision <= 0:
            raise ValueError(f"precision must be positive, got {self.precision}")

    def to_jags(self) -> str:
        return f"dnorm({format_number(self.mean)}, {format_number(self.precision)})"

    def log_prob(self, x) -> jnp.ndarray:
        return -0.5 * self.precision * jnp.sum((x - self.mean) ** 2)


@dataclass(frozen=True)
class Gamma:
    """
    Gamma prior with shape and rate, used for precisions.

    Parameters
    ----------
    shape : float, default=1.0
    rate : float, default=1.0
    """

    shape: float = 1.0
    rate: float = 1.0

    def __post_init__(self):
        if self.shape <= 0 or self.rate <= 0:
            raise ValueError(f"shape and rate must be positive, got ({self.shape}, {self.rate})")

    def to_jags(self) -> str:
        return f"dgamma({format_number(self.shape)}, {format_number(self.rate)})"

    def log_prob(self, x) -> jnp.ndarray:
        return jnp.sum((self.shape - 1.0) * jnp.log(x) - self.rate * x)

    def log_prob_log(self, log_x) -> jnp.ndarray:
        """
        Log density of log(x) when x has this prior.

        Includes the Jacobian term, so it can be used when optimizing
        over an unconstrained log-precision.
        """
        return jnp.sum(self.shape * log_x - self.rate * jnp.exp(log_x))
