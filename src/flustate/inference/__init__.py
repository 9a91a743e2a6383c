"""
inference
=========

Inference engines for state-space models.

This subpackage provides different strategies for fitting a model to a
series and returning a posterior representation.

- JagsSampler : full posterior via the external JAGS sampler (subprocess).
- MAPOptimizer : posterior mode with Optax, used to seed sampler chains.
- SamplerConfig : run settings for JagsSampler.
- jags_io : R dump / CODA text formats.
"""

from .base import InferenceEngine
from .jags import JagsSampler, SamplerConfig
from .jags_io import format_rdump, read_coda, write_rdump
from .map_optimizer import MAPOptimizer

# Registry for string-based inference selection
INFERENCE_ENGINES = {
    "jags": JagsSampler,
    "map": MAPOptimizer,
}

__all__ = [
    "InferenceEngine",
    "JagsSampler",
    "SamplerConfig",
    "MAPOptimizer",
    "format_rdump",
    "read_coda",
    "write_rdump",
    "INFERENCE_ENGINES",
]
