"""
test_models.py
--------------

Tests for the state-space models: JAGS rendering, sampler data, validation
and the JAX log posterior.
"""

import jax.numpy as jnp
import numpy as np
import pytest

from flustate.model import DynamicLinearModel, Gamma, Normal, RandomWalk


@pytest.fixture
def tmin(flu_series):
    return np.linspace(-5.0, 10.0, len(flu_series))


# =============================================================================
# Priors
# =============================================================================


class TestPriors:
    def test_normal_jags(self):
        assert Normal(0.0, 0.001).to_jags() == "dnorm(0, 0.001)"

    def test_gamma_jags(self):
        assert Gamma(1.0, 1.0).to_jags() == "dgamma(1, 1)"

    @pytest.mark.parametrize("bad", [lambda: Normal(0.0, 0.0), lambda: Gamma(-1.0, 1.0), lambda: Gamma(1.0, 0.0)])
    def test_invalid_parameters(self, bad):
        with pytest.raises(ValueError):
            bad()

    def test_gamma_log_prob_log_includes_jacobian(self):
        g = Gamma(2.0, 3.0)
        log_x = jnp.asarray(0.3)
        expected = g.log_prob(jnp.exp(log_x)) + log_x
        assert float(g.log_prob_log(log_x)) == pytest.approx(float(expected), rel=1e-5)


# =============================================================================
# Random walk
# =============================================================================


class TestRandomWalk:
    def test_jags_text(self):
        text = RandomWalk().to_jags()
        assert "y[t] ~ dnorm(x[t], tau_obs)" in text
        assert "x[t] ~ dnorm(x[t-1], tau_add)" in text
        assert "x[1] ~ dnorm(6.907755279, 100)" in text
        assert "tau_obs ~ dgamma(1, 1)" in text
        assert "tau_add ~ dgamma(1, 1)" in text
        assert "mu[t]" not in text
        assert text.startswith("model{") and text.rstrip().endswith("}")

    def test_custom_priors(self):
        text = RandomWalk(x_ic=Normal(2.0, 10.0), tau_obs=Gamma(0.1, 0.1)).to_jags()
        assert "x[1] ~ dnorm(2, 10)" in text
        assert "tau_obs ~ dgamma(0.1, 0.1)" in text

    def test_variable_names(self):
        assert RandomWalk().variable_names() == ["x", "tau_add", "tau_obs"]

    def test_data_keeps_missing(self, flu_series):
        y = flu_series.log().values.copy()
        y[-3:] = np.nan
        data = RandomWalk().data(y)
        assert data["n"] == len(flu_series)
        assert np.isnan(data["y"][-3:]).all()

    @pytest.mark.parametrize("y", [[1.0], [np.nan, np.nan, np.nan], np.ones((3, 2))])
    def test_data_rejects_unusable_series(self, y):
        with pytest.raises(ValueError):
            RandomWalk().data(y)

    def test_log_posterior_ignores_missing(self, flu_series, key):
        model = RandomWalk()
        y = flu_series.log().values.copy()
        y[5] = np.nan
        params = model.init_params(y, key)
        lp = model.log_posterior(params, y)
        assert jnp.isfinite(lp)

    def test_init_params(self, flu_series, key):
        params = RandomWalk().init_params(flu_series.log().values, key)
        assert set(params) == {"x", "log_tau_obs", "log_tau_add"}
        assert params["x"].shape == (len(flu_series),)


# =============================================================================
# Dynamic linear model
# =============================================================================


class TestDynamicLinearModel:
    def test_jags_text(self, tmin):
        text = DynamicLinearModel(covariates={"Tmin": tmin}).to_jags()
        assert "mu[t] <- x[t-1] + beta_Intercept + beta_X*x[t-1] + beta_Tmin*Tmin[t]" in text
        assert "x[t] ~ dnorm(mu[t], tau_add)" in text
        assert "beta_Tmin ~ dnorm(0, 0.001)" in text
        assert "beta_Intercept ~ dnorm(0, 0.001)" in text

    def test_variable_names(self, tmin):
        model = DynamicLinearModel(covariates={"Tmin": tmin})
        assert model.variable_names() == ["x", "tau_add", "tau_obs", "beta_Intercept", "beta_X", "beta_Tmin"]

    def test_terms_can_be_dropped(self):
        model = DynamicLinearModel(intercept=False)
        assert model.mean_expression() == "x[t-1] + beta_X*x[t-1]"
        assert "beta_Intercept" not in model.to_jags()

    def test_data_includes_covariates(self, flu_series, tmin):
        data = DynamicLinearModel(covariates={"Tmin": tmin}).data(flu_series.log().values)
        np.testing.assert_array_equal(data["Tmin"], tmin)

    def test_covariate_length_checked_against_series(self, flu_series):
        model = DynamicLinearModel(covariates={"Tmin": np.zeros(5)})
        with pytest.raises(ValueError, match="length"):
            model.data(flu_series.log().values)

    @pytest.mark.parametrize("name", ["tau_obs", "x", "1Tmin", "T min"])
    def test_invalid_covariate_names(self, name):
        with pytest.raises(ValueError, match="invalid covariate name"):
            DynamicLinearModel(covariates={name: [1.0, 2.0]})

    def test_covariate_missing_values(self):
        with pytest.raises(ValueError, match="missing"):
            DynamicLinearModel(covariates={"Tmin": [1.0, np.nan]})

    def test_covariates_unequal_lengths(self):
        with pytest.raises(ValueError, match="different lengths"):
            DynamicLinearModel(covariates={"a": [1.0, 2.0], "b": [1.0]})

    def test_needs_a_term(self):
        with pytest.raises(ValueError, match="RandomWalk"):
            DynamicLinearModel(intercept=False, autoregressive=False)

    def test_zero_coefficients_reduce_to_random_walk(self, flu_series, tmin, key):
        """With every beta at 0 the densities differ only by the beta priors."""
        y = flu_series.log().values
        dlm = DynamicLinearModel(covariates={"Tmin": tmin})
        rw = RandomWalk()
        params = dlm.init_params(y, key)
        assert all(float(params[b]) == 0.0 for b in ("beta_Intercept", "beta_X", "beta_Tmin"))
        rw_params = {k: params[k] for k in ("x", "log_tau_obs", "log_tau_add")}
        assert float(dlm.log_posterior(params, y)) == pytest.approx(float(rw.log_posterior(rw_params, y)), rel=1e-5)
