"""
errors.py
---------

Exceptions raised by flustate.

The posterior summarizer raises subclasses of PosteriorSummaryError
(itself a ValueError), so callers that already guard numerical input with
``except ValueError`` keep working. Failures at the external sampler
boundary raise SamplerError.
"""

from __future__ import annotations


class PosteriorSummaryError(ValueError):
    """Base class for errors raised while summarizing posterior draws."""


class NoMatchingColumns(PosteriorSummaryError, KeyError):
    """A variable-group prefix matched no columns of the sample matrix."""

    def __init__(self, prefix: str, available: list[str] | None = None):
        self.prefix = prefix
        self.available = list(available or [])
        msg = f"no columns match group prefix {prefix!r}"
        if self.available:
            shown = ", ".join(self.available[:8])
            more = "" if len(self.available) <= 8 else ", ..."
            msg += f" (available: {shown}{more})"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class LengthMismatch(PosteriorSummaryError):
    """A variable group and an external time index have different lengths."""

    def __init__(self, expected: int, got: int, what: str = "time index"):
        self.expected = expected
        self.got = got
        super().__init__(f"{what} has length {got}, expected {expected}")


class InsufficientDraws(PosteriorSummaryError):
    """A column holds no posterior draws at all."""


class InvalidProbability(PosteriorSummaryError):
    """A requested quantile probability lies outside [0, 1]."""


class SamplerError(RuntimeError):
    """The external MCMC sampler could not be run or failed."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        if stderr:
            message = f"{message}\n--- sampler stderr ---\n{stderr.strip()}"
        super().__init__(message)
