import numpy as np
import pytest

from dosextpy._common import ParameterError
from dosextpy._constants import DEFAULT_CONSTANTS, PhysicalConstants
from dosextpy.parameters import ParameterSet, PARAMS_NO

from conftest import make_params, make_vector


def test_constants_defaults():
    c = DEFAULT_CONSTANTS
    assert c.q == 1.60217653e-19
    assert c.k_b == 1.3806505e-23
    assert c.eps0 == 8.854187817e-12
    assert c.temperature == 300.0
    assert c.kb_t == pytest.approx(1.3806505e-23 * 300.0)
    assert c.v_th == pytest.approx(c.kb_t / c.q)
    assert c.q2 == pytest.approx(c.q ** 2)


def test_constants_read_only():
    with pytest.raises(AttributeError):
        DEFAULT_CONSTANTS.temperature = 310.0


def test_constants_reject_non_positive():
    with pytest.raises(ValueError):
        PhysicalConstants(temperature=0.0)


def test_from_vector_converts_to_si(params):
    c = DEFAULT_CONSTANTS
    assert params.sigma == pytest.approx(c.kb_t)
    assert params.wf == pytest.approx(4.9 * c.q)
    assert params.eps_semic == pytest.approx(2.8 * c.eps0)
    assert params.eps_ins == pytest.approx(2.3 * c.eps0)
    assert params.n_nodes == 100
    assert isinstance(params.n_steps, int)
    assert params.flat_band_potential == pytest.approx(0.4)


def test_to_vector_inverts_from_vector():
    vector = make_vector(sigma=2.5, n0_2=1e23, sigma_2=1.5, shift_2=0.2)
    params = ParameterSet.from_vector(vector)
    assert np.allclose(params.to_vector(), vector, rtol=1e-12)


def test_wrong_length():
    with pytest.raises(ParameterError):
        ParameterSet.from_vector(np.zeros(PARAMS_NO - 1))


@pytest.mark.parametrize('overrides', [
    {'t_semic': 0.0},
    {'t_ins': -1e-9},
    {'eps_ins': 0.0},
    {'n0': -1.0},
    {'sigma_3': -0.5},
    {'a_semic': 0.0},
    {'n_nodes': 3},
    {'n_steps': 0},
    {'v_min': 2.0, 'v_max': 2.0},
    {'c_sb': -1e-12},
    {'n_nodes': 10.5},
])
def test_invalid_parameters(overrides):
    with pytest.raises(ParameterError):
        make_params(**overrides)


def test_snapshot_is_read_only(params):
    with pytest.raises(AttributeError):
        params.sigma = 0.0
    with pytest.raises(AttributeError):
        params.unknown_name


def test_with_sigma_returns_new_snapshot(params):
    derived = params.with_sigma(2.0 * params.sigma)
    assert derived is not params
    assert derived.sigma == pytest.approx(2.0 * params.sigma)
    assert params.sigma == pytest.approx(DEFAULT_CONSTANTS.kb_t)
    assert derived.c_sb == params.c_sb
    assert derived != params


def test_recalibration(params):
    c_acc_e, c_acc_s, c_dep_e = 5.0e-11, 4.8e-11, 4.0e-11
    derived = params.with_recalibrated_csb_and_thickness(c_acc_e, c_acc_s, c_dep_e)
    c_sb = params.c_sb + c_acc_e - c_acc_s
    assert derived.c_sb == pytest.approx(c_sb)
    t_semic = params.eps_semic * (params.a_semic / (c_dep_e - c_sb) - params.t_ins / params.eps_ins)
    assert derived.t_semic == pytest.approx(t_semic)
    # series identity at depletion
    c_series = params.a_semic / (params.t_ins / params.eps_ins + derived.t_semic / params.eps_semic)
    assert c_series + derived.c_sb == pytest.approx(c_dep_e)
    assert params.c_sb == pytest.approx(1e-12)


def test_recalibration_allows_negative_stray_capacitance(params):
    derived = params.with_recalibrated_csb_and_thickness(4.0e-11, 4.2e-11, 3.9e-11)
    assert derived.c_sb < 0.0


def test_recalibration_rejects_exhausted_depletion(params):
    with pytest.raises(ParameterError):
        params.with_recalibrated_csb_and_thickness(5.0e-11, 1.0e-11, 4.0e-11)


def test_gaussian_components():
    params = make_params(n0_2=0.0, sigma_2=3.0, n0_3=1e23, sigma_3=2.0, shift_3=0.1)
    comps = params.gaussian_components()
    assert len(comps) == 2
    assert comps[0][2] == 0.0
    assert comps[1][0] == 1e23
    assert comps[1][2] == pytest.approx(0.1)


def test_alternate_constants():
    constants = PhysicalConstants(temperature=150.0)
    params = make_params(constants=constants)
    assert params.constants is constants
    assert params.sigma == pytest.approx(constants.kb_t)
