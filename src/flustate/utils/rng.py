"""
rng.py
------

Random number utilities for flustate.

Every random choice in the package (bootstrap initial values, jittered MAP
starting points, the RNG seeds handed to the external sampler) is driven by
an explicit JAX PRNG key. Nothing reads process-wide generator state, so a
fit is reproducible given the key it was started with.

Examples
--------
>>> from flustate.utils.rng import seed, split
>>> key = seed(0)
>>> k1, k2 = split(key)
>>> chain_seeds(k1, 3)  # integer seeds for three sampler chains
"""

from __future__ import annotations

import jax
import jax.random as jr

# JAGS accepts any positive 32-bit seed; stay clear of the sign bit.
_MAX_SEED = 2**31 - 1


def seed(seed_value: int) -> jax.Array:
    """
    Create a new PRNG key from an integer seed.

    Parameters
    ----------
    seed_value : int
        Seed for random number generation.

    Returns
    -------
    jax.Array
        New PRNG key.
    """
    return jr.PRNGKey(seed_value)


def split(key: jax.Array, num: int = 2):
    """
    Split a PRNG key into multiple independent keys.

    Parameters
    ----------
    key : jax.Array
        RNG key to split.
    num : int, default=2
        Number of new keys to return.

    Returns
    -------
    jax.Array
        Stacked independent PRNG keys, shape (num, 2).
    """
    return jr.split(key, num=num)


def chain_seeds(key: jax.Array, n_chains: int) -> list[int]:
    """
    Derive one integer seed per sampler chain from a PRNG key.

    Parameters
    ----------
    key : jax.Array
        RNG key.
    n_chains : int
        Number of chains.

    Returns
    -------
    list of int
        Seeds in [1, 2**31 - 1).
    """
    draws = jr.randint(key, (n_chains,), 1, _MAX_SEED)
    return [int(s) for s in draws]
