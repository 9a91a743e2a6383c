"""
test_summary.py
---------------

Tests for extract_group, credible_band and the scalar parameter summaries.
"""

import jax.numpy as jnp
import jax.random as jr
import numpy as np
import pytest

from flustate.errors import InsufficientDraws, InvalidProbability, LengthMismatch, NoMatchingColumns
from flustate.posterior import (
    CredibleBand,
    SampleMatrix,
    credible_band,
    extract_group,
    parameter_correlation,
    parameter_summary,
)
from flustate.utils.math import precision_to_sd


@pytest.fixture
def state_matrix(key):
    """401 draws of x[1..6] plus two precisions."""
    n_draws, n_time = 401, 6
    k1, k2 = jr.split(key)
    level = jnp.linspace(6.0, 7.0, n_time)
    x = level + 0.2 * jr.normal(k1, (n_draws, n_time))
    taus = jnp.exp(jr.normal(k2, (n_draws, 2)))
    names = ["tau_add", "tau_obs"] + [f"x[{t}]" for t in range(1, n_time + 1)]
    return SampleMatrix(names, jnp.concatenate([taus, x], axis=1))


# =============================================================================
# extract_group
# =============================================================================


class TestExtractGroup:
    def test_orders_by_numeric_index(self):
        cols = {f"x[{i}]": [float(i)] * 3 for i in (3, 11, 1, 2)}
        group = extract_group(cols, "x")
        assert group.indices == (1, 2, 3, 11)

    def test_accepts_mapping(self):
        group = extract_group({"x[1]": [1.0, 2.0], "x[2]": [3.0, 4.0], "tau": [0.0, 0.0]}, "x")
        assert group.draws.shape == (2, 2)

    def test_no_match_raises(self, state_matrix):
        with pytest.raises(NoMatchingColumns):
            extract_group(state_matrix, "beta")

    def test_no_match_is_a_key_error(self, state_matrix):
        with pytest.raises(KeyError):
            extract_group(state_matrix, "beta")

    def test_time_index_mismatch(self, state_matrix):
        with pytest.raises(LengthMismatch):
            extract_group(state_matrix, "x", time_index=list("abcde"))


# =============================================================================
# credible_band
# =============================================================================


class TestCredibleBand:
    """Band construction, ordering and back-transforms."""

    def test_ordering(self, state_matrix):
        band = credible_band(extract_group(state_matrix, "x"))
        assert bool(jnp.all(band.lower <= band.median))
        assert bool(jnp.all(band.median <= band.upper))

    def test_length_matches_group(self, state_matrix):
        group = extract_group(state_matrix, "x")
        band = credible_band(group)
        assert len(band) == len(group) == 6
        assert band.name == "x"

    def test_monotonic_transform_commutes(self):
        """exp applied before quantiles equals exp of the log-scale quantiles."""
        # n=41: p*(n-1) is an integer for p in {0.025, 0.5, 0.975}
        draws = jr.normal(jr.PRNGKey(1), (41, 5))
        on_log = credible_band(draws)
        natural = credible_band(draws, transform=jnp.exp)
        np.testing.assert_allclose(np.asarray(natural.lower), np.exp(np.asarray(on_log.lower)), rtol=1e-5)
        np.testing.assert_allclose(np.asarray(natural.median), np.exp(np.asarray(on_log.median)), rtol=1e-5)
        np.testing.assert_allclose(np.asarray(natural.upper), np.exp(np.asarray(on_log.upper)), rtol=1e-5)

    def test_width_grows_with_mass(self, state_matrix):
        group = extract_group(state_matrix, "x")
        narrow = credible_band(group, probs=(0.25, 0.75))
        wide = credible_band(group, probs=(0.025, 0.975))
        assert bool(jnp.all(wide.width >= narrow.width))
        assert narrow.mass == pytest.approx(0.5)

    def test_probs_order_does_not_matter(self, state_matrix):
        group = extract_group(state_matrix, "x")
        a = credible_band(group, probs=(0.975, 0.025))
        b = credible_band(group, probs=(0.025, 0.975))
        assert a.probs == (0.025, 0.975)
        np.testing.assert_array_equal(np.asarray(a.lower), np.asarray(b.lower))

    def test_single_draw_is_zero_width(self):
        with pytest.warns(UserWarning, match="zero-width"):
            band = credible_band(jnp.array([[1.5, 2.5]]))
        assert bool(jnp.all(band.lower == band.upper))
        np.testing.assert_array_equal(np.asarray(band.median), [1.5, 2.5])

    @pytest.mark.parametrize(
        "probs,exc",
        [
            ((-0.1, 0.9), InvalidProbability),
            ((0.1, 1.5), InvalidProbability),
            ((0.1, 0.5, 0.9), InvalidProbability),
        ],
    )
    def test_invalid_probs(self, state_matrix, probs, exc):
        with pytest.raises(exc):
            credible_band(extract_group(state_matrix, "x"), probs=probs)

    def test_empty_column_raises(self):
        with pytest.raises(InsufficientDraws):
            credible_band([jnp.array([1.0, 2.0]), jnp.array([])])

    def test_ragged_columns(self):
        band = credible_band([jnp.arange(5.0), jnp.arange(9.0)])
        np.testing.assert_allclose(np.asarray(band.median), [2.0, 4.0])

    def test_time_index_attached(self, state_matrix):
        dates = [f"2013-01-{d:02d}" for d in range(1, 7)]
        band = credible_band(extract_group(state_matrix, "x"), time_index=dates)
        assert band.time_index == dates

    def test_time_index_mismatch(self, state_matrix):
        with pytest.raises(LengthMismatch):
            credible_band(extract_group(state_matrix, "x"), time_index=["a"])

    def test_contains(self):
        band = CredibleBand(
            lower=jnp.array([0.0, 1.0]),
            median=jnp.array([1.0, 2.0]),
            upper=jnp.array([2.0, 3.0]),
        )
        np.testing.assert_array_equal(np.asarray(band.contains([2.0, 3.5])), [True, False])

    def test_band_rejects_unequal_bounds(self):
        with pytest.raises(LengthMismatch):
            CredibleBand(lower=jnp.zeros(2), median=jnp.zeros(3), upper=jnp.zeros(3))


# =============================================================================
# Scalar parameters
# =============================================================================


class TestParameterSummary:
    def test_defaults_to_scalar_columns(self, state_matrix):
        summary = parameter_summary(state_matrix)
        assert list(summary) == ["tau_add", "tau_obs"]
        stats = summary["tau_obs"]
        assert set(stats) == {"mean", "std", "quantiles"}
        assert stats["quantiles"][0.025] <= stats["quantiles"][0.5] <= stats["quantiles"][0.975]

    def test_transform(self, state_matrix):
        raw = parameter_summary(state_matrix, ["tau_add"])
        sd = parameter_summary(state_matrix, ["tau_add"], transforms={"tau_add": precision_to_sd})
        # monotone decreasing: the median maps to the median
        assert sd["tau_add"]["quantiles"][0.5] == pytest.approx(
            1.0 / np.sqrt(raw["tau_add"]["quantiles"][0.5]), rel=1e-3
        )

    def test_correlation(self, state_matrix):
        names, corr = parameter_correlation(state_matrix)
        assert names == ["tau_add", "tau_obs"]
        assert corr.shape == (2, 2)
        assert float(corr[0, 0]) == pytest.approx(1.0, abs=1e-5)

    def test_correlation_needs_two_parameters(self, state_matrix):
        with pytest.raises(ValueError):
            parameter_correlation(state_matrix, ["tau_obs"])


# =============================================================================
# End to end
# =============================================================================


class TestGroupToBand:
    def test_five_steps_on_natural_scale(self, key):
        names = [f"x[{t}]" for t in range(1, 6)] + ["xmax[1]", "tau_obs"]
        sm = SampleMatrix(names, jr.normal(key, (1000, len(names))))
        group = extract_group(sm, "x")
        assert group.column_names == [f"x[{t}]" for t in range(1, 6)]
        band = credible_band(group, probs=(0.025, 0.975), transform=jnp.exp)
        for seq in (band.lower, band.median, band.upper):
            assert seq.shape == (5,)
            assert bool(jnp.all(seq > 0))

    @pytest.mark.parametrize("delta", [-4, -1, 1, 3])
    def test_any_time_index_mismatch_raises(self, key, delta):
        sm = SampleMatrix([f"x[{t}]" for t in range(1, 6)], jr.normal(key, (20, 5)))
        with pytest.raises(LengthMismatch):
            extract_group(sm, "x", time_index=list(range(5 + delta)))
        with pytest.raises(LengthMismatch):
            credible_band(sm.group("x"), time_index=list(range(5 + delta)))


class TestColumnShapes:
    def test_flat_list_is_one_column(self):
        band = credible_band([1.0, 2.0, 3.0, 4.0, 5.0])
        assert len(band) == 1
        assert float(band.median[0]) == pytest.approx(3.0)
        assert float(band.lower[0]) == pytest.approx(1.1, rel=1e-5)
        assert float(band.upper[0]) == pytest.approx(4.9, rel=1e-5)

    def test_single_draw_transformed(self):
        with pytest.warns(UserWarning, match="zero-width"):
            band = credible_band(jnp.array([[0.5, -1.0]]), transform=jnp.exp)
        expected = np.exp([0.5, -1.0])
        for seq in (band.lower, band.median, band.upper):
            np.testing.assert_allclose(np.asarray(seq), expected, rtol=1e-6)
