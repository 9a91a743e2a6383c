"""
flustate
========

Bayesian state-space models for surveillance time series.

This package fits a random walk and a dynamic linear model to a univariate
epidemiological series (e.g. the Google Flu Trends index for
Massachusetts) with the external JAGS sampler, and turns the posterior
draws into time-indexed credible bands, parameter summaries and held-out
forecast checks.

----------------------------------------------------------------------
Workflow
----------------------------------------------------------------------

Core design
-----------
1. Models (model/):
   - Structured descriptions of a state-space model: priors, process mean,
     covariates. Rendered to JAGS text only at the sampler boundary.
   - RandomWalk: x[t] ~ N(x[t-1], 1/tau_add), y[t] ~ N(x[t], 1/tau_obs).
   - DynamicLinearModel: adds intercept, autoregressive and covariate terms.

2. Inference (inference/):
   - JagsSampler runs JAGS as a subprocess and returns a SampleMatrix.
   - MAPOptimizer (Optax) finds the posterior mode to seed chains.

3. Posterior summarizer (posterior/):
   - SampleMatrix groups ``x[1], x[2], ...`` once at ingestion.
   - extract_group + credible_band: median and credible interval per time
     step, with an optional monotonic back-transform (exp for log fits).
   - compare_bands: coverage and residuals on held-out steps only.

4. Data (data/):
   - FluSeries, Google Flu Trends loader, held-out splits that keep the
     withheld truth away from the fitting input.

Unified import style
--------------------
Top-level:
  from flustate import RandomWalk, DynamicLinearModel, JagsSampler, SamplerConfig
  from flustate import SampleMatrix, extract_group, credible_band, compare_bands

Subpackages:
  from flustate.model import Normal, Gamma
  from flustate.posterior import rhat, effective_sample_size, parameter_summary
  from flustate.data import load_flu_trends_csv, hold_out_last
  from flustate.utils import seed, split, bootstrap_initial_values

Randomness
----------
Every random choice takes an explicit JAX PRNG key (flustate.utils.rng);
the same key reproduces the same initial values and sampler seeds.

----------------------------------------------------------------------
"""

from . import data as data
from . import inference as inference
from . import model as model
from . import posterior as posterior
from . import session as session
from . import utils as utils
from .data.dataset import FluSeries
from .data.holdout import HeldOutSplit, hold_out, hold_out_last
from .data.io import load_flu_trends_csv
from .errors import (
    InsufficientDraws,
    InvalidProbability,
    LengthMismatch,
    NoMatchingColumns,
    PosteriorSummaryError,
    SamplerError,
)

# Inference
from .inference.jags import JagsSampler, SamplerConfig
from .inference.map_optimizer import MAPOptimizer
from .model.dlm import DynamicLinearModel
from .model.random_walk import RandomWalk

# Posterior
from .posterior.comparison import HeldOutComparison, compare_bands
from .posterior.sample_matrix import SampleMatrix
from .posterior.summary import CredibleBand, credible_band, extract_group

# Orchestration
from .session.forecast_session import ForecastSession

__version__ = "0.1.0"

__all__ = [
    # Models
    "RandomWalk",
    "DynamicLinearModel",
    # Inference
    "JagsSampler",
    "SamplerConfig",
    "MAPOptimizer",
    # Posterior
    "SampleMatrix",
    "CredibleBand",
    "extract_group",
    "credible_band",
    "compare_bands",
    "HeldOutComparison",
    # Data
    "FluSeries",
    "HeldOutSplit",
    "hold_out",
    "hold_out_last",
    "load_flu_trends_csv",
    # Session
    "ForecastSession",
    # Errors
    "PosteriorSummaryError",
    "NoMatchingColumns",
    "LengthMismatch",
    "InsufficientDraws",
    "InvalidProbability",
    "SamplerError",
    # Subpackages
    "data",
    "inference",
    "model",
    "posterior",
    "session",
    "utils",
]
