import logging
import time
import numpy as np

from dosextpy._common import ParameterError
from dosextpy.alignment import align_curves
from dosextpy.config import DLM, SimulationSettings
from dosextpy.interface.simulation import CVSimulation

logger = logging.getLogger(__name__)


class TraceEntry:
    """One calibration trial: candidate width [J] and the two errors."""

    def __init__(self, sigma, error_l2, error_h1):
        self.sigma = sigma
        self.error_l2 = error_l2
        self.error_h1 = error_h1

    def __iter__(self):
        return iter((self.sigma, self.error_l2, self.error_h1))

    def __repr__(self):
        return f"TraceEntry(sigma={self.sigma!r}, error_l2={self.error_l2!r}, error_h1={self.error_h1!r})"


class CalibrationResult:
    """
    Attributes:
        trace (list of TraceEntry): trials in ascending sigma order
        best_sigma_l2 (float): candidate with minimum L2 error [J]
        best_sigma_h1 (float): candidate with minimum H1 error [J]
        params (ParameterSet): snapshot after the last recalibration
    """

    def __init__(self, trace, best_sigma_l2, best_sigma_h1, params):
        self.trace = trace
        self.best_sigma_l2 = best_sigma_l2
        self.best_sigma_h1 = best_sigma_h1
        self.params = params

    @property
    def sigmas(self):
        return np.array([t.sigma for t in self.trace])

    @property
    def errors_l2(self):
        return np.array([t.error_l2 for t in self.trace])

    @property
    def errors_h1(self):
        return np.array([t.error_h1 for t in self.trace])


def sigma_candidates(sigma, negative_shift, positive_shift, n_splits, kb_t):
    """
    Candidate gaussian widths around sigma, ascending.

    n_splits values evenly spaced from max(sigma - negative_shift, 0.1 kT)
    to sigma and n_splits values from sigma to sigma + positive_shift,
    sigma itself counted once: 2 n_splits - 1 candidates. All quantities in J.
    A sigma at or below the 0.1 kT floor leaves no room below it and is rejected.
    """
    lower = max(sigma - negative_shift, 0.1 * kb_t)
    if lower >= sigma:
        logger.error(f"You entered sigma = {sigma / kb_t} kT")
        raise ParameterError("sigma must exceed 0.1 kT to generate the fit candidates.")
    left = np.linspace(lower, sigma, n_splits)
    right = np.linspace(sigma, sigma + positive_shift, n_splits)
    return np.sort(np.concatenate([left, right[1:]]), kind='stable')


def argmin_ignore_nan(values):
    """Index of the minimum, NaN entries ignored; None when every entry is NaN."""
    values = np.asarray(values, dtype=float)
    if np.all(np.isnan(values)):
        return None
    return int(np.nanargmin(values))


class SigmaCalibration:
    """
    Search of the gaussian disorder width that best reproduces an experimental C-V curve.

    Every candidate width is simulated and aligned to the experiment; after
    each trial the stray capacitance and the semiconductor thickness are
    recalibrated and the new snapshot is used for the next candidate, so the
    trials are coupled and must run in order.

    Args:
        params (ParameterSet): starting parameters, N0 > 0 and sigma > 0
        v_exp, c_exp (array): experimental voltages [V] and capacitances [F]
        settings (SimulationSettings): numerical options, including the shift budgets
        constants (PhysicalConstants): defaults to params.constants
        simulation_class: class with the CVSimulation interface
        on_trial (callable): called as on_trial(index, params, result, metrics, curves)
    """

    def __init__(self, params, v_exp, c_exp, settings=None, constants=None,
                 simulation_class=CVSimulation, on_trial=None):
        self.params = params
        self.v_exp = np.asarray(v_exp, dtype=float)
        self.c_exp = np.asarray(c_exp, dtype=float)
        self.settings = SimulationSettings() if settings is None else settings
        self.constants = params.constants if constants is None else constants
        self.simulation_class = simulation_class
        self.on_trial = on_trial

        if not (params.n0 > 0.0 and params.sigma > 0.0):
            logger.error(f"You entered N0 = {params.n0}, sigma = {params.sigma}")
            raise ParameterError("calibration needs a first gaussian with N0 > 0 and sigma > 0.")

    def candidates(self):
        kt = self.constants.kb_t
        s = self.settings
        return sigma_candidates(self.params.sigma, s.negative_shift * kt, s.positive_shift * kt,
                                s.n_splits, kt)

    def run(self):
        t_start = time.perf_counter()
        kt = self.constants.kb_t
        sigma = self.candidates()

        logger.info("")
        logger.info(f"Fitting sigma over {sigma.size} candidates "
                    f"[{sigma[0] / kt:.4f}, {sigma[-1] / kt:.4f}] kT")

        params = self.params
        trace = []
        for i, s in enumerate(sigma):
            logger.info(f"{DLM}iteration: {i + 1}/{sigma.size} (sigma = {s / kt:.6f} kT)")

            params = params.with_sigma(s)

            # simulate and compare
            result = self.simulation_class(params, self.settings, self.constants).run()
            metrics, curves = align_curves(self.v_exp, self.c_exp, result.voltages, result.c_tot,
                                           params.a_semic, params.c_sb)
            trace.append(TraceEntry(s, metrics.error_l2, metrics.error_h1))

            if self.on_trial is not None:
                self.on_trial(i, params, result, metrics, curves)

            # stray capacitance and semiconductor thickness for the next candidate
            params = params.with_recalibrated_csb_and_thickness(
                metrics.c_acc_experim, metrics.c_acc_simulated, metrics.c_dep_experim)
            logger.info(f"{DLM}C_sb = {params.c_sb:.6e} F, t_semic = {params.t_semic:.6e} m")

        logger.info(f"Fitting took {time.perf_counter() - t_start:.2f} seconds")

        i_l2 = argmin_ignore_nan([t.error_l2 for t in trace])
        i_h1 = argmin_ignore_nan([t.error_h1 for t in trace])
        best_l2 = np.nan if i_l2 is None else trace[i_l2].sigma
        best_h1 = np.nan if i_h1 is None else trace[i_h1].sigma
        if i_l2 is None or i_h1 is None:
            logger.warning("No candidate produced a finite error")

        logger.info("")
        logger.info(f"Minimum L2-error corresponds to sigma = {best_l2 / kt}")
        logger.info(f"Minimum H1-error corresponds to sigma = {best_h1 / kt}")

        return CalibrationResult(trace, best_l2, best_h1, params)
