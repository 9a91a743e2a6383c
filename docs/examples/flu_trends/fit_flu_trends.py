"""
Flu Trends state-space example: random walk vs. dynamic linear model
--------------------------------------------------------------------

Fits both models to the weekly Google Flu Trends index for Massachusetts
with JAGS, withholding the last 12 weeks, and plots the natural-scale
credible bands with the held-out observations.

Usage:
    python fit_flu_trends.py [path/to/gflu_data.txt]

Without a path, a synthetic series with the same shape is used. Requires the
``jags`` binary on the PATH.
"""
from __future__ import annotations

import logging
import os
import sys

import jax.numpy as jnp
import matplotlib.pyplot as plt
import numpy as np

# Ensure local src is importable when running directly
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../../../src")))

from flustate.data import FluSeries, load_flu_trends_csv
from flustate.inference import JagsSampler, SamplerConfig
from flustate.model import DynamicLinearModel, RandomWalk
from flustate.posterior import compare_models, print_parameter_summary
from flustate.session import ForecastSession
from flustate.utils import precision_to_sd, seed

PLOTS_DIR = os.path.join(os.path.dirname(__file__), "plots")
N_HELD_OUT = 12

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def synthetic_series(n_weeks: int = 150) -> FluSeries:
    """Seasonal log-level with random-walk noise, roughly on the Flu Trends scale."""
    rng = np.random.default_rng(0)
    t = np.arange(n_weeks)
    log_level = np.log(1000.0) + 1.2 * np.sin(2 * np.pi * t / 52.0) + np.cumsum(rng.normal(0.0, 0.05, n_weeks))
    values = np.exp(log_level + rng.normal(0.0, 0.1, n_weeks))
    dates = [str(np.datetime64("2010-01-03") + np.timedelta64(7 * int(i), "D")) for i in t]
    return FluSeries(dates, values, region="Massachusetts")


# 1) Data
print("[1/4] Loading data...")
if len(sys.argv) > 1:
    series = load_flu_trends_csv(sys.argv[1], region="Massachusetts")
else:
    series = synthetic_series()
print(series)

# 2) Models and sampler
print("[2/4] Building models...")
# --8<-- [start:models]
week = np.arange(len(series))
covariates = {"season": np.sin(2 * np.pi * week / 52.0)}
models = {
    "random walk": RandomWalk(),
    "dlm": DynamicLinearModel(covariates=covariates),
}
sampler = JagsSampler(SamplerConfig(n_chains=3, n_adapt=1000, n_iter=5000, burnin=1000, thin=2))
# --8<-- [end:models]

# 3) Fit with the last weeks withheld
print("[3/4] Sampling...")
# --8<-- [start:fit]
bands = {}
key = seed(42)
for name, model in models.items():
    session = ForecastSession(model, series, sampler)
    split = session.hold_out_last(N_HELD_OUT)
    session.fit(key=key)
    print(f"\n== {name} ==")
    print_parameter_summary(session.samples, transforms={"tau_obs": precision_to_sd, "tau_add": precision_to_sd})
    for param, stats in session.diagnostics().items():
        print(f"  {param}: R-hat={stats['rhat']:.3f}, ESS={stats['ess']:.0f}")
    bands[name] = session.state_band()

results = compare_models(bands, split.observed, split.indices)
# --8<-- [end:fit]
for name, result in results.items():
    print(
        f"{name}: coverage={result.coverage:.2f} (nominal {result.mass:.2f}), "
        f"RMSE={result.rmse:.1f}, bias={result.bias:.1f}"
    )

# 4) Plot
print("[4/4] Plotting...")
fig, axes = plt.subplots(len(bands), 1, figsize=(10, 4 * len(bands)), sharex=True)
t = np.arange(len(series))
held = np.asarray(split.indices)
for ax, (name, band) in zip(np.atleast_1d(axes), bands.items()):
    ax.fill_between(t, np.asarray(band.lower), np.asarray(band.upper), color="#a6cee3", alpha=0.7, label="95% band")
    ax.plot(t, np.asarray(band.median), color="#1f78b4", lw=1.5, label="Median")
    ax.scatter(t, split.fit_values, s=8, c="k", label="Fitted observations")
    ax.scatter(held, split.truth, s=16, c="#e31a1c", label="Held-out observations")
    ax.axvline(held[0] - 0.5, color="#7f7f7f", ls="--", lw=1.0)
    ax.set_yscale("log")
    ax.set_ylabel("Flu index")
    ax.set_title(f"{name}: held-out coverage {results[name].coverage:.2f}")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
np.atleast_1d(axes)[-1].set_xlabel(f"Week (from {series.dates[0]})")
plt.tight_layout()

os.makedirs(PLOTS_DIR, exist_ok=True)
fig.savefig(os.path.join(PLOTS_DIR, "flu_trends_bands.png"), dpi=200, bbox_inches="tight")
print(f"Saved plot to {PLOTS_DIR}")

# Pooled log-scale residuals, for comparison with the natural-scale metrics above
log_truth = jnp.log(jnp.asarray(split.truth))
for name, band in bands.items():
    log_median = jnp.log(band.median[held])
    print(f"{name}: log-scale RMSE={float(jnp.sqrt(jnp.mean((log_truth - log_median) ** 2))):.3f}")
