"""
base.py
-------

Abstract base class for inference engines.

All inference engines implement a ``fit(model, y)`` method:

- JagsSampler returns a SampleMatrix of posterior draws from the external
  JAGS sampler.
- MAPOptimizer returns a MAPPosterior (point estimate), used to seed
  sampler chains.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from flustate.data.dataset import FluSeries


class InferenceEngine(ABC):
    """
    Abstract interface for inference engines.

    Methods
    -------
    fit(model, y) -> posterior
        Fit model parameters to data and return a posterior representation.
    """

    @abstractmethod
    def fit(self, model: Any, y: Any, **kwargs: Any) -> Any:
        """
        Fit model parameters to data.

        Parameters
        ----------
        model : StateSpaceModel
            Model to fit.
        y : FluSeries or array-like
            Observations on the model scale; NaN marks missing values.

        Returns
        -------
        SampleMatrix or MAPPosterior
        """
        ...


def observations(y: Any) -> np.ndarray:
    """Return the observation vector of a FluSeries or array-like."""
    if isinstance(y, FluSeries):
        return y.values.copy()
    return np.asarray(y, dtype=float)
