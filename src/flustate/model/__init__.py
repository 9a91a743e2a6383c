"""
flustate.model
==============

Model-layer API: structured state-space model descriptions.

Includes
--------
- StateSpaceModel (base: data model, priors, JAGS rendering, JAX density)
- RandomWalk
- DynamicLinearModel
- Priors (Normal, Gamma)

Typical usage
-------------
    from flustate.model import RandomWalk, DynamicLinearModel, Gamma
"""

from .base import StateSpaceModel
from .dlm import DynamicLinearModel
from .prior import Gamma, Normal
from .random_walk import RandomWalk

__all__ = [
    # Base
    "StateSpaceModel",
    # Models
    "RandomWalk",
    "DynamicLinearModel",
    # Priors
    "Normal",
    "Gamma",
]
