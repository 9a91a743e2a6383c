"""
session
=======

Orchestration of a full fit: hold out data, sample, summarize, evaluate.

Includes:
- ForecastSession
"""

from .forecast_session import ForecastSession

__all__ = ["ForecastSession"]
