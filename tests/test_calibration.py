from types import SimpleNamespace

import numpy as np
import pytest

from dosextpy._common import ParameterError
from dosextpy._constants import DEFAULT_CONSTANTS
from dosextpy.config import SimulationSettings
from dosextpy.interface.calibration import (SigmaCalibration, argmin_ignore_nan,
                                            sigma_candidates)

from conftest import make_params

KT = DEFAULT_CONSTANTS.kb_t
V = np.linspace(-2.0, 2.0, 81)


def experimental_curve(v, width=0.3):
    return 1.0e-11 + 2.0e-11 / (1.0 + np.exp(-v / width))


class FakeSimulation:
    """C-V sweep whose transition width grows with sigma, 0.3 V at sigma = 1 kT."""

    calls = []

    def __init__(self, params, settings=None, constants=None):
        self.params = params

    def run(self):
        FakeSimulation.calls.append(self.params)
        p = self.params
        c_phys = experimental_curve(V, width=0.3 * p.sigma / KT)
        return SimpleNamespace(voltages=V, c_tot=(c_phys - 1.0e-12) / p.a_semic)


@pytest.fixture(autouse=True)
def reset_calls():
    FakeSimulation.calls = []


def test_candidate_count_and_order():
    sigma = sigma_candidates(1.0 * KT, 1.0 * KT, 1.0 * KT, 5, KT)
    assert sigma.size == 9
    assert np.all(np.diff(sigma) > 0.0)
    assert np.unique(sigma).size == 9
    assert sigma[0] == pytest.approx(0.1 * KT)
    assert sigma[-1] == pytest.approx(2.0 * KT)
    assert np.count_nonzero(sigma == 1.0 * KT) == 1


def test_candidate_lower_bound():
    sigma = sigma_candidates(3.0 * KT, 1.0 * KT, 2.0 * KT, 3, KT)
    assert np.allclose(sigma / KT, [2.0, 2.5, 3.0, 4.0, 5.0])


def test_argmin_ignores_nan():
    assert argmin_ignore_nan([3.0, np.nan, 1.0, 2.0]) == 2
    assert argmin_ignore_nan([np.nan, np.nan]) is None


def test_requires_positive_first_gaussian():
    with pytest.raises(ParameterError):
        SigmaCalibration(make_params(n0=0.0), V, experimental_curve(V))
    with pytest.raises(ParameterError):
        SigmaCalibration(make_params(sigma=0.0), V, experimental_curve(V))


def test_trace_and_minimum():
    settings = SimulationSettings(n_splits=5, threads=1)
    params = make_params()
    calibration = SigmaCalibration(params, V, experimental_curve(V), settings=settings,
                                   simulation_class=FakeSimulation)
    result = calibration.run()

    assert len(result.trace) == 9
    assert np.all(np.diff(result.sigmas) > 0.0)
    assert np.allclose(result.sigmas / KT, calibration.candidates() / KT)
    assert result.best_sigma_l2 == pytest.approx(KT)
    assert result.best_sigma_h1 == pytest.approx(KT)
    assert np.all(np.isfinite(result.errors_l2))
    assert np.all(result.errors_h1 >= result.errors_l2 * (1.0 - 1e-12))
    # the starting snapshot is untouched
    assert params.c_sb == pytest.approx(1.0e-12)
    assert params.sigma == pytest.approx(KT)


def test_trials_are_coupled():
    settings = SimulationSettings(n_splits=3, threads=1)
    trials = []

    def on_trial(i, params, result, metrics, curves):
        trials.append((i, params, metrics))

    result = SigmaCalibration(make_params(), V, experimental_curve(V), settings=settings,
                              simulation_class=FakeSimulation, on_trial=on_trial).run()

    assert [t[0] for t in trials] == list(range(5))
    assert FakeSimulation.calls == [t[1] for t in trials]
    for (_, prev, metrics), (_, nxt, _) in zip(trials[:-1], trials[1:]):
        expected = prev.with_recalibrated_csb_and_thickness(
            metrics.c_acc_experim, metrics.c_acc_simulated, metrics.c_dep_experim)
        assert nxt.c_sb == pytest.approx(expected.c_sb)
        assert nxt.t_semic == pytest.approx(expected.t_semic)
        assert nxt.sigma > prev.sigma

    _, last, metrics = trials[-1]
    final = last.with_recalibrated_csb_and_thickness(
        metrics.c_acc_experim, metrics.c_acc_simulated, metrics.c_dep_experim)
    assert result.params == final


@pytest.mark.parametrize('sigma', [0.1, 0.05])
def test_candidates_at_the_floor(sigma):
    with pytest.raises(ParameterError):
        sigma_candidates(sigma * KT, 1.0 * KT, 1.0 * KT, 5, KT)
    just_above = sigma_candidates(0.1001 * KT, 1.0 * KT, 1.0 * KT, 5, KT)
    assert np.unique(just_above).size == 9
