"""
Physical parameters of a MIS device simulation.

A ParameterSet is built once from a flat vector of 27 values in user units
(the format of one row of the parameters .csv file) and stored in SI units.
It is a read-only snapshot: the calibration loop derives new snapshots with
with_sigma() and with_recalibrated_csb_and_thickness() instead of mutating
the current one.
"""

import logging
import numpy as np

from dosextpy._common import ParameterError, build_dict
from dosextpy._constants import DEFAULT_CONSTANTS

logger = logging.getLogger(__name__)

# order of the entries of the flat parameter vector, with user units
PARAMETER_NAMES = (
    'simulation_no',   # simulation number
    't_semic',         # semiconductor thickness [m]
    't_ins',           # insulator thickness [m]
    'eps_semic',       # semiconductor relative permittivity
    'eps_ins',         # insulator relative permittivity
    'temperature',     # device temperature [K]
    'wf',              # back metal work function [eV]
    'ea',              # semiconductor electron affinity [eV]
    'n0',              # 1st gaussian amplitude [m^-3]
    'sigma',           # 1st gaussian width [kT]
    'n0_2',            # 2nd gaussian amplitude [m^-3]
    'sigma_2',         # 2nd gaussian width [kT]
    'shift_2',         # 2nd gaussian shift [V]
    'n0_3',
    'sigma_3',
    'shift_3',
    'n0_4',
    'sigma_4',
    'shift_4',
    'n0_exp',          # exponential amplitude [m^-3]
    'lambda_exp',      # exponential decay [kT]
    'a_semic',         # device area [m^2]
    'c_sb',            # stray capacitance [F]
    'n_nodes',         # mesh nodes
    'n_steps',         # bias steps
    'v_min',           # minimum gate voltage [V]
    'v_max',           # maximum gate voltage [V]
)

PARAMS_NO = len(PARAMETER_NAMES)

# entries given in units of kT, converted to J
_KT_SCALED = ('sigma', 'sigma_2', 'sigma_3', 'sigma_4', 'lambda_exp')
# entries given in eV, converted to J
_EV_SCALED = ('wf', 'ea')
# relative permittivities, converted to absolute
_EPS_SCALED = ('eps_semic', 'eps_ins')
_INTEGERS = ('simulation_no', 'n_nodes', 'n_steps')


class ParameterSet:
    """
    Read-only snapshot of the device and sweep parameters, in SI units.

    Use ParameterSet.from_vector() to build it from user units. The
    constructor takes the SI values as keyword arguments (names as in
    PARAMETER_NAMES) and validates them.
    """

    def __init__(self, constants=DEFAULT_CONSTANTS, **values):
        missing = [name for name in PARAMETER_NAMES if name not in values]
        extra = [name for name in values if name not in PARAMETER_NAMES]
        if missing or extra:
            raise ParameterError(f"missing parameters {missing}, unknown parameters {extra}")

        data = {}
        for name in PARAMETER_NAMES:
            value = values[name]
            if name in _INTEGERS:
                if float(value) != int(value):
                    raise ParameterError(f"{name} must be an integer, got {value}")
                value = int(value)
            else:
                value = float(value)
            data[name] = value

        object.__setattr__(self, '_data', data)
        object.__setattr__(self, '_constants', constants)
        self._check()

    @classmethod
    def from_vector(cls, vector, constants=DEFAULT_CONSTANTS):
        """
        Build a parameter set from a flat vector of PARAMS_NO values
        in user units (see PARAMETER_NAMES).
        """
        vector = np.asarray(vector, dtype=float).ravel()
        if vector.size != PARAMS_NO:
            raise ParameterError(f"expected {PARAMS_NO} parameters, got {vector.size}")

        values = build_dict(PARAMETER_NAMES, vector.tolist())
        if values["c_sb"] < 0.0:
            logger.error(f"You entered c_sb = {values['c_sb']}")
            raise ParameterError("c_sb must be non-negative.")
        for name in _KT_SCALED:
            values[name] *= constants.kb_t
        for name in _EV_SCALED:
            values[name] *= constants.q
        for name in _EPS_SCALED:
            values[name] *= constants.eps0
        return cls(constants=constants, **values)

    def to_vector(self):
        """Flat vector in user units, inverse of from_vector()."""
        c = self._constants
        out = []
        for name in PARAMETER_NAMES:
            value = self._data[name]
            if name in _KT_SCALED:
                value = value / c.kb_t
            elif name in _EV_SCALED:
                value = value / c.q
            elif name in _EPS_SCALED:
                value = value / c.eps0
            out.append(value)
        return np.array(out, dtype=float)

    def _check(self):
        d = self._data
        for name in ('t_semic', 't_ins', 'eps_semic', 'eps_ins', 'temperature', 'a_semic'):
            if not d[name] > 0.0:
                logger.error(f"You entered {name} = {d[name]}")
                raise ParameterError(f"{name} must be strictly positive.")
        for name in ('n0', 'sigma', 'n0_2', 'sigma_2', 'n0_3', 'sigma_3',
                     'n0_4', 'sigma_4', 'n0_exp', 'lambda_exp'):
            if d[name] < 0.0:
                logger.error(f"You entered {name} = {d[name]}")
                raise ParameterError(f"{name} must be non-negative.")
        # both layers need at least two nodes
        if d['n_nodes'] < 4:
            logger.error(f"You entered n_nodes = {d['n_nodes']}")
            raise ParameterError("n_nodes must be an integer >= 4.")
        if d['n_steps'] < 1:
            logger.error(f"You entered n_steps = {d['n_steps']}")
            raise ParameterError("n_steps must be a positive integer.")
        if not d['v_min'] < d['v_max']:
            logger.error(f"You entered v_min = {d['v_min']}, v_max = {d['v_max']}")
            raise ParameterError("v_min must be lower than v_max.")

    def __getattr__(self, name):
        data = self.__dict__.get('_data')
        if data is not None and name in data:
            return data[name]
        raise AttributeError(f"'ParameterSet' object has no attribute '{name}'")

    def __setattr__(self, name, value):
        raise AttributeError("ParameterSet is read-only, derive a new snapshot instead")

    def __eq__(self, other):
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return self._data == other._data and self._constants == other._constants

    def __hash__(self):
        return hash(tuple(self._data[name] for name in PARAMETER_NAMES))

    def __repr__(self):
        return f"ParameterSet(simulation_no={self.simulation_no}, sigma={self.sigma!r}, c_sb={self.c_sb!r}, t_semic={self.t_semic!r})"

    @property
    def constants(self):
        return self._constants

    def as_dict(self):
        return dict(self._data)

    @property
    def flat_band_potential(self):
        """(Wf - Ea) / q [V]."""
        return (self.wf - self.ea) / self._constants.q

    def gaussian_components(self):
        """
        List of (amplitude, width, shift) of the gaussians that contribute
        to the charge. The first gaussian is always listed, the others only
        when their amplitude is strictly positive.
        """
        comps = [(self.n0, self.sigma, 0.0)]
        for k in (2, 3, 4):
            n0 = self._data[f'n0_{k}']
            if n0 > 0.0:
                comps.append((n0, self._data[f'sigma_{k}'], self._data[f'shift_{k}']))
        return comps

    def _derive(self, **changes):
        data = dict(self._data)
        data.update(changes)
        return ParameterSet(constants=self._constants, **data)

    def with_sigma(self, sigma):
        """New snapshot with the 1st gaussian width set to sigma [J]."""
        return self._derive(sigma=sigma)

    def with_recalibrated_csb_and_thickness(self, c_acc_experim, c_acc_simulated, c_dep_experim):
        """
        New snapshot with stray capacitance and semiconductor thickness
        recalibrated against the experimental curve.

        The stray capacitance closes the accumulation gap,
            C_sb' = C_sb + C_acc_experim - C_acc_simulated,
        then the semiconductor thickness follows from the series capacitor
        identity at depletion,
            C_dep_experim - C_sb' = A / (t_ins / eps_ins + t_semic' / eps_semic).
        """
        c_sb = self.c_sb + c_acc_experim - c_acc_simulated
        c_layers = c_dep_experim - c_sb
        if not c_layers > 0.0:
            logger.error(f"C_dep_experim = {c_dep_experim}, recalibrated C_sb = {c_sb}")
            raise ParameterError("recalibrated stray capacitance exceeds the depletion capacitance.")
        t_semic = self.eps_semic * (self.a_semic / c_layers - self.t_ins / self.eps_ins)
        return self._derive(c_sb=c_sb, t_semic=t_semic)
