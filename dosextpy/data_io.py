"""
Input/output of the DOS extraction.

Functions:
    read_experimental: read (index, V, C) experimental rows
    load_parameter_sets: read one ParameterSet per row of a parameters file
    write_cv_csv: C-V comparison table, padded when the series differ in length
    write_fitting_csv: sigma / L2 / H1 table of a calibration run
    write_gnuplot_script: gnuplot script for C-V or error plots
"""

import logging
import os
import numpy as np

from dosextpy._constants import DEFAULT_CONSTANTS
from dosextpy.config import CSV_FLOAT_FMT
from dosextpy.parameters import ParameterSet, PARAMS_NO

logger = logging.getLogger(__name__)

CV_HEADER = "V_experim, C_experim, dC/dV_experim, V_simulated, C_simulated, dC/dV_simulated"
FITTING_HEADER = "sigma, L2-error, H1-error"


def _fmt(value):
    return CSV_FLOAT_FMT.format(value)


def _read_table(path, skip_headers):
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input file '{path}' not found")
    table = np.loadtxt(path, delimiter=',', skiprows=1 if skip_headers else 0, ndmin=2)
    return table


def read_experimental(path, skip_headers=True):
    """
    Read experimental data, a comma separated table of (index, V, C) rows.

    Returns:
        tuple: voltages [V], capacitances [F] in file order
    """
    table = _read_table(path, skip_headers)
    if table.shape[1] < 3:
        raise ValueError(f"'{path}': expected 3 columns (index, V, C), found {table.shape[1]}")
    logger.info(f"Experimental data read from {path} ({table.shape[0]} samples)")
    return table[:, 1].copy(), table[:, 2].copy()


def load_parameter_sets(path, skip_headers=True, constants=DEFAULT_CONSTANTS):
    """Read one ParameterSet per row of a comma separated parameters file."""
    table = _read_table(path, skip_headers)
    if table.shape[1] != PARAMS_NO:
        raise ValueError(f"'{path}': expected {PARAMS_NO} columns, found {table.shape[1]}")
    return [ParameterSet.from_vector(row, constants=constants) for row in table]


def write_cv_csv(path, curves):
    """
    Write experimental and simulated series side by side. When one series is
    shorter its missing cells are left empty.
    """
    n_exp = curves.v_exp.shape[0]
    n_sim = curves.v_sim.shape[0]
    with open(path, 'w', encoding='utf-8') as f:
        print(CV_HEADER, file=f)
        for i in range(max(n_exp, n_sim)):
            if i < n_exp:
                left = f"{_fmt(curves.v_exp[i])}, {_fmt(curves.c_exp[i])}, {_fmt(curves.dcdv_exp[i])}, "
            else:
                left = ",,, "
            if i < n_sim:
                right = f"{_fmt(curves.v_sim[i])}, {_fmt(curves.c_sim[i])}, {_fmt(curves.dcdv_sim[i])}"
            else:
                right = ",,"
            print(left + right, file=f)


def write_fitting_csv(path, trace, kb_t):
    """Write one (sigma [kT], L2-error, H1-error) row per calibration candidate."""
    with open(path, 'w', encoding='utf-8') as f:
        print(FITTING_HEADER, file=f)
        for entry in trace:
            print(f"{_fmt(entry.sigma / kb_t)}, {_fmt(entry.error_l2)}, {_fmt(entry.error_h1)}", file=f)


def cv_plot_title(params, v_shift):
    """Title of the C-V plot, listing the DOS parameters of the run."""
    c = params.constants
    kt = c.kb_t
    return (f"N0={params.n0:.4e}, σ={params.sigma / kt:.4e}, T={params.temperature:.4e}, "
            f"Phi_B={params.flat_band_potential:.4e}"
            f"\\nN0_2={params.n0_2:.4e}, σ_2={params.sigma_2 / kt:.4e}, shift_2={params.shift_2:.4e}"
            f"\\nN0_3={params.n0_3:.4e}, σ_3={params.sigma_3 / kt:.4e}, shift_3={params.shift_3:.4e}"
            f"\\nN0_4={params.n0_4:.4e}, σ_4={params.sigma_4 / kt:.4e}, shift_4={params.shift_4:.4e}"
            f"\\nN0_e={params.n0_exp:.4e}, λ_e={params.lambda_exp / kt:.4e}"
            f"\\nV_{{shift}}={v_shift:.4e}, nNodes={params.n_nodes}, nSteps={params.n_steps}")


def gnuplot_commands(csv_filename, title):
    """Two-panel plot (dC/dV and C) of a C-V .csv file."""
    return "\n".join([
        'set datafile separator ",";',
        'set format y "%.2te%+03T";',
        '',
        'set key right center;',
        '',
        f'stats "{csv_filename}" using 1 name "V" nooutput;',
        '',
        f'set multiplot layout 2, 1 title "{title}" font ", 10";',
        '\tset xlabel "V_{gate} - V_{shift} [V]" offset 0, 0.75;',
        '',
        '\tset ylabel "dC/dV [F/V]";',
        f'\tplot [V_min:V_max] "{csv_filename}" using 1:3 title "Experimental" with lines lw 2, \\',
        f'\t                   "{csv_filename}" using 4:6 title "Simulated"    with lines lw 2;',
        '',
        '\tset ylabel "C [F]";',
        f'\tplot [V_min:V_max] "{csv_filename}" using 1:2 title "Experimental" with lines lw 2, \\',
        f'\t                   "{csv_filename}" using 4:5 title "Simulated"    with lines lw 2;',
        '',
        'unset multiplot;',
    ])


def gnuplot_error_commands(csv_filename):
    """Two-panel plot (L2 and H1 errors against sigma) of a fitting .csv file."""
    return "\n".join([
        'set datafile separator ",";',
        'set format y "%.2te%+03T";',
        '',
        'set key right center;',
        '',
        f'stats "{csv_filename}" using 1 name "sigma" nooutput;',
        f'stats "{csv_filename}" using 2 name "error_L2" nooutput;',
        f'stats "{csv_filename}" using 3 name "error_H1" nooutput;',
        '',
        'set multiplot layout 2, 1 title "Errors between experimental and simulated capacitance values" font ", 10";',
        '\tset xlabel "sigma [K_B * 300K]" offset 0, 0.75; ',
        '',
        '\tset ylabel "L2-error";',
        f'\tplot [sigma_min:sigma_max] "{csv_filename}" using 1:2 title "L2-error" with lines lw 2, error_L2_min title "Minimum";',
        '',
        '\tset ylabel "H1-error";',
        f'\tplot [sigma_min:sigma_max] "{csv_filename}" using 1:3 title "H1-error" with lines lw 2, error_H1_min title "Minimum";',
        '',
        'unset multiplot;',
    ])


def write_gnuplot_script(path, commands):
    """Save a gnuplot script for interactive reuse."""
    with open(path, 'w', encoding='utf-8') as f:
        print(commands, file=f)
        print("", file=f)
        print("pause mouse;", file=f)
