"""
Alignment of simulated and experimental C-V curves and distance metrics.

The simulated curve is translated along the voltage axis so that the
maxima of the two dC/dV curves coincide, the experimental data are then
interpolated on the shifted simulated grid and compared in the L2 norm
(values) and in the H1 norm (values and slopes).
"""

import logging
import numpy as np

from dosextpy import _common

logger = logging.getLogger(__name__)


class FitMetrics:
    """
    Scalars produced by one alignment.

    Attributes:
        v_shift (float): peak to peak voltage shift, simulated minus experimental [V]
        c_acc_experim (float): experimental capacitance at the last sample [F]
        c_acc_simulated (float): simulated capacitance nearest to the last experimental voltage [F]
        c_dep_experim (float): experimental capacitance at the first sample [F]
        error_l2 (float): L2 distance between the capacitance curves
        error_h1 (float): H1 distance (values and derivatives)
        c_acc_star (float): maximum simulated capacitance per unit area [F m^-2]
    """

    def __init__(self, v_shift, c_acc_experim, c_acc_simulated, c_dep_experim,
                 error_l2, error_h1, c_acc_star=np.nan):
        self.v_shift = v_shift
        self.c_acc_experim = c_acc_experim
        self.c_acc_simulated = c_acc_simulated
        self.c_dep_experim = c_dep_experim
        self.error_l2 = error_l2
        self.error_h1 = error_h1
        self.c_acc_star = c_acc_star

    def __repr__(self):
        return (f"FitMetrics(v_shift={self.v_shift!r}, error_l2={self.error_l2!r}, "
                f"error_h1={self.error_h1!r})")


class AlignedCurves:
    """Experimental and shifted simulated series, as written to the C-V .csv file."""

    def __init__(self, v_exp, c_exp, dcdv_exp, v_sim, c_sim, dcdv_sim):
        self.v_exp = v_exp
        self.c_exp = c_exp
        self.dcdv_exp = dcdv_exp
        self.v_sim = v_sim
        self.c_sim = c_sim
        self.dcdv_sim = dcdv_sim


def sort_experimental(v, c):
    """Sort the experimental pairs by voltage; ties keep their original order."""
    v = np.asarray(v, dtype=float)
    c = np.asarray(c, dtype=float)
    if v.shape != c.shape:
        raise ValueError(f"voltage and capacitance columns differ in length ({v.size} vs {c.size})")
    order = np.argsort(v, kind='stable')
    return v[order], c[order]


def derivative(y, x):
    """dy/dx by finite differences on a possibly non-uniform grid."""
    y = np.asarray(y, dtype=float)
    x = np.asarray(x, dtype=float)
    if y.size < 2:
        raise ValueError("at least two samples are needed to differentiate")
    return np.gradient(y, x)


def interpolate(x_src, y_src, x_target):
    """Piecewise linear interpolation of (x_src, y_src) on x_target (x_src ascending)."""
    return np.interp(np.asarray(x_target, dtype=float), np.asarray(x_src, dtype=float),
                     np.asarray(y_src, dtype=float))


def error_l2(a, b, x):
    """Squared L2 distance int (a - b)^2 dx, trapezoidal rule."""
    d = np.asarray(a, dtype=float) - np.asarray(b, dtype=float)
    return _common.trapz(d * d, x)


def align_curves(v_exp, c_exp, v_sim, c_tot, a_semic, c_sb):
    """
    Align a simulated C-V curve to experimental data and measure their distance.

    Args:
        v_exp, c_exp (array): experimental voltages [V] and capacitances [F], any order;
            repeated voltages are averaged before differentiating
        v_sim (array): simulated voltages [V], ascending
        c_tot (array): simulated capacitance per unit area [F m^-2]
        a_semic (float): device area [m^2]
        c_sb (float): stray capacitance [F]

    Returns:
        tuple: (FitMetrics, AlignedCurves)
    """
    v_exp, c_exp = sort_experimental(v_exp, c_exp)
    v_sim = np.asarray(v_sim, dtype=float)
    c_tot = np.asarray(c_tot, dtype=float)
    if v_sim.shape != c_tot.shape:
        raise ValueError("simulated voltage and capacitance differ in length")

    c_sim = c_tot * a_semic + c_sb

    # repeated voltage readings are averaged into one sample of the grid
    v_grid, inverse = np.unique(v_exp, return_inverse=True)
    c_grid = np.bincount(inverse, weights=c_exp) / np.bincount(inverse)
    dcdv_grid = derivative(c_grid, v_grid)
    dcdv_exp = dcdv_grid[inverse]
    dcdv_sim = derivative(c_sim, v_sim)

    # peak alignment of the derivatives
    j_e = int(np.argmax(dcdv_grid))
    j_s = int(np.argmax(dcdv_sim))
    v_shift = v_sim[j_s] - v_grid[j_e]
    v_shifted = v_sim - v_shift

    c_interp = interpolate(v_grid, c_grid, v_shifted)
    dcdv_interp = interpolate(v_grid, dcdv_grid, v_shifted)

    # calibration anchors
    c_acc_experim = c_exp[-1]
    i = int(np.argmin(np.abs(v_shifted - v_exp[-1])))
    c_acc_simulated = c_sim[i]
    c_dep_experim = c_exp[0]

    # errors restricted to the overlap of the two grids
    overlap = (v_shifted >= v_exp[0]) & (v_shifted <= v_exp[-1])
    if np.count_nonzero(overlap) < 2:
        logger.warning("Simulated and experimental curves overlap on less than two samples, "
                       "errors set to NaN")
        err_l2 = np.nan
        err_h1 = np.nan
    else:
        x = v_shifted[overlap]
        err_l2 = np.sqrt(error_l2(c_interp[overlap], c_sim[overlap], x))
        err_h1 = np.sqrt(err_l2**2 + error_l2(dcdv_interp[overlap], dcdv_sim[overlap], x))

    metrics = FitMetrics(
        v_shift=v_shift,
        c_acc_experim=c_acc_experim,
        c_acc_simulated=c_acc_simulated,
        c_dep_experim=c_dep_experim,
        error_l2=err_l2,
        error_h1=err_h1,
        c_acc_star=float(c_tot.max()),
    )
    curves = AlignedCurves(v_exp, c_exp, dcdv_exp, v_shifted, c_sim, dcdv_sim)
    return metrics, curves

