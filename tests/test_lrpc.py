'''
Tests for the long-run partial-correlation assembler.
'''

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal

import lrpc
from lrpc import FactorVARFit, TuningArgs, par_lrpc, set_config
from lrpc.core.exceptions import DimensionError, ParameterError
from lrpc.core.results import ThresholdResult


@pytest.fixture
def near_identity(rng, white_noise_model):
    """Inputs around Gamma = I plus symmetric off-diagonal noise below 0.05."""
    p = 10
    noise = rng.uniform(-0.045, 0.045, size=(p, p))
    gamma = np.eye(p) + np.triu(noise, 1) + np.triu(noise, 1).T
    x = rng.standard_normal((p, 200))
    return white_noise_model(gamma), x


class TestTuningArgs:
    """Tests for TuningArgs."""

    def test_defaults_from_config(self):
        set_config("estimation", "n_folds", 3)
        tuning = TuningArgs()
        assert tuning.n_folds == 3
        assert tuning.path_length == 10
        assert tuning.do_plot is False

    @pytest.mark.parametrize("kwargs", [{"n_folds": 0}, {"path_length": -2},
                                        {"n_folds": 2.5}])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ParameterError):
            TuningArgs(**kwargs)


class TestParLRPC:
    """Tests for par_lrpc."""

    def test_near_identity_target(self, near_identity):
        """A weakly perturbed identity gives a diagonal estimate with tiny pc."""
        model, x = near_identity
        result = par_lrpc(model, x, eta=0.1, n_cores=1)

        delta = result.delta
        off_diag = ~np.eye(10, dtype=bool)
        assert np.all(np.abs(np.diag(delta)) > np.sum(np.abs(delta * off_diag), axis=1))
        assert np.all(np.abs(result.pc[off_diag]) < 0.2)
        assert_allclose(delta, 0.9 * np.eye(10), atol=1e-7)

        assert result.eta == 0.1
        assert not result.adaptive
        assert result.cv is None

    def test_output_conventions(self, near_identity):
        model, x = near_identity
        result = par_lrpc(model, x, eta=0.1, n_cores=1)
        assert_array_equal(np.diag(result.pc), -np.ones(10))
        assert_array_equal(np.diag(result.lrpc), -np.ones(10))
        assert_array_equal(result.delta, result.delta.T)
        with pytest.raises(ValueError):
            result.delta[0, 0] = 1.0

    def test_omega_uses_var_transform(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel, lags=1)
        result = par_lrpc(model, var1_panel, eta=0.05, do_correct=False, n_cores=1)
        transform = model.var_transform()
        assert_allclose(result.omega, 2 * np.pi * transform.T @ result.delta @ transform,
                        atol=1e-12)

    def test_cross_validated_eta(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel, lags=1)
        result = par_lrpc(model, var1_panel, tuning=TuningArgs(n_folds=1, path_length=5),
                          n_cores=1)
        assert result.cv is not None
        assert result.eta == result.cv.eta
        assert result.eta in result.cv.eta_path

    def test_adaptive(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel, lags=1)
        result = par_lrpc(model, var1_panel, eta=0.1, adaptive=True, n_cores=1)
        assert result.adaptive
        assert_array_equal(result.delta, result.delta.T)
        assert np.all(np.diag(result.delta) > 0)

    def test_custom_threshold_operator(self, near_identity):
        model, x = near_identity
        seen = []

        def keep_all(matrix, do_plot=False):
            seen.append(matrix.shape)
            return ThresholdResult(thr_mat=matrix, thr=0.0)

        par_lrpc(model, x, eta=0.1, do_threshold=True, threshold_fn=keep_all, n_cores=1)
        assert seen == [(10, 10), (10, 10)]

    def test_default_threshold(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel, lags=1)
        result = par_lrpc(model, var1_panel, eta=0.05, do_threshold=True, n_cores=1)
        assert_array_equal(np.diag(result.lrpc), -np.ones(4))
        assert_array_equal(result.delta, result.delta_threshold.thr_mat)
        assert_array_equal(result.omega, result.omega_threshold.thr_mat)
        assert result.delta_threshold.figure is None

    def test_threshold_plots_kept(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel, lags=1)
        result = par_lrpc(model, var1_panel, eta=0.05, do_threshold=True,
                          tuning=TuningArgs(do_plot=True), n_cores=1)
        for thr in (result.delta_threshold, result.omega_threshold):
            assert isinstance(thr.figure, plt.Figure)
            plt.close(thr.figure)

    def test_no_threshold_outputs_by_default(self, near_identity):
        model, x = near_identity
        result = par_lrpc(model, x, eta=0.1, n_cores=1)
        assert result.delta_threshold is None
        assert result.omega_threshold is None

    def test_bounded_repair_option(self, near_identity):
        model, x = near_identity
        result = par_lrpc(model, x, eta=0.1, bound_partial_correlations=True, n_cores=1)
        assert np.all(np.abs(result.lrpc) <= 1 + 1e-9)

    def test_dataframe_input(self, near_identity):
        model, x = near_identity
        result = par_lrpc(model, pd.DataFrame(x), eta=0.1, n_cores=1)
        assert result.delta.shape == (10, 10)

    def test_variable_mismatch(self, near_identity):
        model, x = near_identity
        with pytest.raises(DimensionError):
            par_lrpc(model, x[:5], eta=0.1, n_cores=1)

    @pytest.mark.parametrize("eta", [0.0, -0.5])
    def test_invalid_eta(self, near_identity, eta):
        model, x = near_identity
        with pytest.raises(ParameterError):
            par_lrpc(model, x, eta=eta, n_cores=1)

    def test_invalid_worker_count(self, near_identity):
        model, x = near_identity
        with pytest.raises(ParameterError):
            par_lrpc(model, x, eta=0.1, n_cores=0)


class TestResultHelpers:
    """Tests for LRPCResult conversions."""

    def test_to_pandas(self, near_identity):
        model, x = near_identity
        names = [f"s{i}" for i in range(10)]
        frames = par_lrpc(model, x, eta=0.1, n_cores=1).to_pandas(names)
        assert set(frames) == {"delta", "omega", "pc", "lrpc"}
        assert list(frames["pc"].columns) == names

    def test_summary(self, near_identity):
        model, x = near_identity
        summary = par_lrpc(model, x, eta=0.1, n_cores=1).summary()
        assert "Regularisation (eta): 0.1" in summary
        assert "of 45" in summary


class TestPackage:
    """Tests for the package entry point."""

    def test_version(self):
        assert lrpc.get_version() == lrpc.__version__

    def test_public_api(self):
        for name in ("par_lrpc", "direct_cv", "direct_inv_est",
                     "adaptive_direct_inv_est", "threshold", "FactorVARFit"):
            assert hasattr(lrpc, name)

    def test_exception_hierarchy(self):
        import lrpc.core as core

        errors = {name for name in core.__all__ if name.endswith("Error")}
        assert errors == {"LRPCError", "ParameterError", "DimensionError", "DataError",
                          "OptimizationError", "ColumnSolveError", "EstimationError",
                          "ConfigurationError"}
        for name in errors:
            assert issubclass(getattr(core, name), core.LRPCError)
