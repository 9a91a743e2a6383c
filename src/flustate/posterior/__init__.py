"""
posterior
=========

Posterior draws and their summaries.

This subpackage provides:
- SampleMatrix / VariableGroup: draws from the external sampler, with
  vector-valued nodes grouped once at ingestion
- extract_group, credible_band, CredibleBand: time-indexed quantile bands
- parameter_summary, parameter_correlation: scalar parameter statistics
- compare_bands, compare_models: held-out evaluation
- diagnostics: R-hat and effective sample size
- MAPPosterior: point estimate used to seed sampler chains

Typical usage
-------------
    from flustate.posterior import extract_group, credible_band
    band = credible_band(extract_group(samples, "x"), transform=jnp.exp)
"""

from .comparison import HeldOutComparison, HeldOutPoint, compare_bands, compare_models
from .diagnostics import convergence_report, effective_sample_size, rhat
from .map_posterior import MAPPosterior
from .sample_matrix import SampleMatrix, VariableGroup
from .summary import (
    CredibleBand,
    credible_band,
    extract_group,
    parameter_correlation,
    parameter_summary,
    print_parameter_summary,
)

__all__ = [
    # Containers
    "SampleMatrix",
    "VariableGroup",
    "CredibleBand",
    "MAPPosterior",
    # Summaries
    "extract_group",
    "credible_band",
    "parameter_summary",
    "print_parameter_summary",
    "parameter_correlation",
    # Held-out evaluation
    "HeldOutComparison",
    "HeldOutPoint",
    "compare_bands",
    "compare_models",
    # Diagnostics
    "rhat",
    "effective_sample_size",
    "convergence_report",
]
