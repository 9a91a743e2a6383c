"""
utils
=====

Shared utility functions and helpers for flustate.

This subpackage provides:
- bootstrap : bootstrap starting values for sampler chains.
- math : type-7 quantiles, probability checks, precision transforms.
- rng : explicit JAX PRNG keys and per-chain sampler seeds.
"""

from .bootstrap import bootstrap_initial_values
from .math import precision_to_sd, quantile, validate_probs
from .rng import chain_seeds, seed, split

__all__ = [
    # bootstrap
    "bootstrap_initial_values",
    # math
    "quantile",
    "validate_probs",
    "precision_to_sd",
    # rng
    "seed",
    "split",
    "chain_seeds",
]
