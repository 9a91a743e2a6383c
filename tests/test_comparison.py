"""
test_comparison.py
------------------

Tests for held-out evaluation of credible bands.
"""

import jax.numpy as jnp
import numpy as np
import pytest

from flustate.data import hold_out
from flustate.errors import LengthMismatch
from flustate.posterior import CredibleBand, compare_bands, compare_models


@pytest.fixture
def band():
    median = jnp.arange(10.0)
    return CredibleBand(
        lower=median - 1.0,
        median=median,
        upper=median + 1.0,
        time_index=[f"w{i}" for i in range(10)],
    )


class TestCompareBands:
    """Metrics are computed on held-out indices only."""

    def test_only_held_out_indices_scored(self, band):
        observed = np.arange(10.0)
        # wildly off everywhere except the held-out steps
        observed[:7] = 100.0
        result = compare_bands(band, observed, [7, 8, 9])
        assert len(result) == 3
        assert result.coverage == 1.0
        assert result.rmse == pytest.approx(0.0)

    def test_residuals_and_coverage(self, band):
        observed = np.arange(10.0)
        observed[8] += 3.0
        observed[9] -= 0.5
        result = compare_bands(band, observed, [8, 9])
        rows = {p.index: p for p in result.points}
        assert rows[8].residual == pytest.approx(3.0)
        assert not rows[8].within
        assert rows[9].within
        assert result.coverage == pytest.approx(0.5)
        assert result.bias == pytest.approx(1.25)
        assert result.mean_width == pytest.approx(2.0)

    def test_labels_from_time_index(self, band):
        result = compare_bands(band, np.arange(10.0), [4])
        assert result.points[0].label == "w4"
        assert result.as_records()[0]["label"] == "w4"

    def test_observed_band_uses_median(self, band):
        truth = CredibleBand(lower=jnp.zeros(10), median=jnp.arange(10.0) + 0.5, upper=jnp.full(10, 20.0))
        result = compare_bands(band, truth, [2])
        assert result.points[0].observed == pytest.approx(2.5)

    def test_nan_outside_held_out_is_ignored(self, band):
        split = hold_out(np.arange(10.0), [3, 6])
        result = compare_bands(band, split.observed, split.indices)
        assert result.coverage == 1.0

    def test_mass_from_band(self, band):
        assert compare_bands(band, np.arange(10.0), [0]).mass == pytest.approx(0.95)

    @pytest.mark.parametrize("indices", [[], [1, 1], [10], [-1]])
    def test_bad_indices(self, band, indices):
        with pytest.raises(ValueError):
            compare_bands(band, np.arange(10.0), indices)

    def test_missing_observation_at_held_out_index(self, band):
        observed = np.arange(10.0)
        observed[5] = np.nan
        with pytest.raises(ValueError, match="missing"):
            compare_bands(band, observed, [5])

    def test_misaligned_observed(self, band):
        with pytest.raises(LengthMismatch):
            compare_bands(band, np.arange(9.0), [1])


def test_compare_models(band):
    shifted = CredibleBand(lower=band.lower + 5, median=band.median + 5, upper=band.upper + 5)
    results = compare_models({"rw": band, "dlm": shifted}, np.arange(10.0), range(7, 10))
    assert results["rw"].coverage == 1.0
    assert results["dlm"].coverage == 0.0
    assert results["dlm"].bias == pytest.approx(-5.0)


def test_coverage_drops_when_one_point_moves_outside(band):
    held = [6, 7, 8, 9]
    observed = np.asarray(band.median).copy()
    assert compare_bands(band, observed, held).coverage == 1.0
    observed[8] = 1e6
    assert compare_bands(band, observed, held).coverage == pytest.approx(0.75)
