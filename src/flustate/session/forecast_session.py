"""
forecast_session.py
-------------------

End-to-end orchestration of one model fit.

ForecastSession ties the pieces together:

    series --(hold_out)--> fitting input --(log)--> sampler --> SampleMatrix
                 |                                                 |
                 +-- truth ---------------> compare_bands <-- state band

The withheld truth values stay inside the HeldOutSplit; the sampler only
ever sees ``split.fit_values``.

Examples
--------
>>> series = load_flu_trends_csv("gflu_data.txt", region="Massachusetts")
>>> session = ForecastSession(RandomWalk(), series, JagsSampler(SamplerConfig(burnin=200)))
>>> session.hold_out_last(12)
>>> session.fit(key=seed(1))
>>> band = session.state_band()            # natural scale
>>> session.evaluate().coverage
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import jax.numpy as jnp

from flustate.data.dataset import FluSeries
from flustate.data.holdout import HeldOutSplit, hold_out, hold_out_last
from flustate.inference.jags import JagsSampler
from flustate.inference.map_optimizer import MAPOptimizer
from flustate.posterior.comparison import HeldOutComparison, compare_bands
from flustate.posterior.diagnostics import convergence_report
from flustate.posterior.sample_matrix import SampleMatrix
from flustate.posterior.summary import CredibleBand, credible_band, extract_group, parameter_summary
from flustate.utils.math import precision_to_sd
from flustate.utils.rng import seed, split

logger = logging.getLogger(__name__)


class ForecastSession:
    """
    Fit one state-space model to one series and summarize the result.

    Parameters
    ----------
    model : StateSpaceModel
        Model to fit.
    series : FluSeries
        Series on the natural scale.
    sampler : JagsSampler, optional
        Sampler to use. Defaults to JagsSampler().
    log_scale : bool, default=True
        Fit on log(series) and report bands back on the natural scale.
    """

    def __init__(self, model, series: FluSeries, sampler: JagsSampler | None = None, *, log_scale: bool = True):
        self.model = model
        self.series = series
        self.sampler = sampler or JagsSampler()
        self.log_scale = log_scale
        self.split: HeldOutSplit | None = None
        self.samples: SampleMatrix | None = None

    # ------------------------------------------------------------------
    # DATA
    # ------------------------------------------------------------------
    def hold_out(self, indices: Sequence[int]) -> HeldOutSplit:
        """Withhold observations at ``indices`` from the next fit."""
        self.split = hold_out(self.series.values, indices)
        self.samples = None
        return self.split

    def hold_out_last(self, n: int) -> HeldOutSplit:
        """Withhold the last ``n`` observations from the next fit."""
        self.split = hold_out_last(self.series.values, n)
        self.samples = None
        return self.split

    def fitting_series(self) -> FluSeries:
        """The series handed to the sampler (held-out steps missing)."""
        fit = self.series if self.split is None else self.series.with_values(self.split.fit_values)
        return fit.log() if self.log_scale else fit

    # ------------------------------------------------------------------
    # FIT
    # ------------------------------------------------------------------
    def fit(self, *, key: Any = None, map_inits: bool = False) -> SampleMatrix:
        """
        Run the sampler.

        Parameters
        ----------
        key : jax.Array, optional
            PRNG key for all randomness in the fit. If None, defaults to seed(0).
        map_inits : bool, default=False
            Start chains around the MAP estimate instead of bootstrap
            moment estimates.

        Returns
        -------
        SampleMatrix
        """
        key = seed(0) if key is None else key
        init_key, sampler_key = split(key)
        y = self.fitting_series()

        inits = None
        if map_inits:
            map_key, jitter_key = split(init_key)
            estimate = MAPOptimizer().fit(self.model, y, key=map_key)
            inits = estimate.initial_values(self.sampler.config.n_chains, key=jitter_key)

        logger.info("fitting %r to %r", self.model, y)
        self.samples = self.sampler.fit(self.model, y, inits=inits, key=sampler_key)
        return self.samples

    # ------------------------------------------------------------------
    # SUMMARIES
    # ------------------------------------------------------------------
    def _require_samples(self) -> SampleMatrix:
        if self.samples is None:
            raise RuntimeError("Must call fit() before summarizing")
        return self.samples

    def state_band(self, probs: Sequence[float] = (0.025, 0.975)) -> CredibleBand:
        """Credible band of the latent state on the natural scale."""
        samples = self._require_samples()
        group = extract_group(samples, self.model.state, time_index=self.series.dates)
        transform = jnp.exp if self.log_scale else None
        return credible_band(group, probs, transform, time_index=self.series.dates)

    def parameter_summary(self) -> dict[str, dict[str, Any]]:
        """Scalar parameter summary, precisions reported as standard deviations."""
        samples = self._require_samples()
        transforms = {name: precision_to_sd for name in ("tau_obs", "tau_add") if name in samples}
        return parameter_summary(samples, transforms=transforms)

    def diagnostics(self) -> dict[str, dict[str, float]]:
        """R-hat and ESS of the scalar parameters."""
        return convergence_report(self._require_samples())

    def evaluate(self, probs: Sequence[float] = (0.025, 0.975)) -> HeldOutComparison:
        """
        Score the state band against the withheld observations.

        Raises
        ------
        RuntimeError
            If nothing was held out or fit() has not run.
        """
        if self.split is None:
            raise RuntimeError("no observations were held out; call hold_out() before fit()")
        return compare_bands(self.state_band(probs), self.split.observed, self.split.indices)
