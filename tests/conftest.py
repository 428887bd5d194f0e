import numpy as np
import pytest

from dosextpy._constants import DEFAULT_CONSTANTS
from dosextpy.config import SimulationSettings
from dosextpy.parameters import ParameterSet, PARAMETER_NAMES

# single gaussian device, user units
BASE_VALUES = {
    'simulation_no': 1,
    't_semic': 30.0e-9,
    't_ins': 450.0e-9,
    'eps_semic': 2.8,
    'eps_ins': 2.3,
    'temperature': 300.0,
    'wf': 4.9,
    'ea': 4.5,
    'n0': 1.0e24,
    'sigma': 1.0,
    'n0_2': 0.0,
    'sigma_2': 0.0,
    'shift_2': 0.0,
    'n0_3': 0.0,
    'sigma_3': 0.0,
    'shift_3': 0.0,
    'n0_4': 0.0,
    'sigma_4': 0.0,
    'shift_4': 0.0,
    'n0_exp': 0.0,
    'lambda_exp': 0.0,
    'a_semic': 1.0e-6,
    'c_sb': 1.0e-12,
    'n_nodes': 100,
    'n_steps': 21,
    'v_min': -2.0,
    'v_max': 2.0,
}


def make_vector(**overrides):
    values = dict(BASE_VALUES)
    values.update(overrides)
    return np.array([values[name] for name in PARAMETER_NAMES], dtype=float)


def make_params(constants=DEFAULT_CONSTANTS, **overrides):
    return ParameterSet.from_vector(make_vector(**overrides), constants=constants)


@pytest.fixture
def params():
    return make_params()


@pytest.fixture
def serial_settings():
    return SimulationSettings(threads=1)
