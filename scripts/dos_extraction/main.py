#!/usr/bin/env python

"""
Script for the extraction of the density of states of an organic
semiconductor from quasi-static C-V measurements of MIS devices.
Based on the dosextpy library.

The calculation includes:
- Quasi-static C-V simulation for every row of a parameters file
- Alignment with the experimental curve and L2/H1 distances
- Optional fit of the gaussian disorder width
- Parameter rows distributed over MPI processes when mpi4py is available

Physical Model:
- 1D nonlinear Poisson equation across semiconductor and insulator
- Gaussian or exponential density of states with Fermi-Dirac occupation

Numerical Methods:
- P1 Finite Element Method with lumped mass
- Damped Newton iterations with continuation in the gate voltage
- Gauss-Hermite / Gauss-Laguerre quadrature of the charge density
"""

# =============================================================================
# GENERAL IMPORTS AND SETUP
# =============================================================================

import os                               # Operating system interface for file operations

# Input/output and logging utilities
import logging                          # Logging library for structured output control

# =============================================================================
# CORE LIBRARY IMPORTS
# =============================================================================

from dosextpy import tic, toc           # High-resolution timing functions
from dosextpy import DosModel           # Simulation and fit driver for one parameter set
from dosextpy import SimulationSettings # Validated numerical options
from dosextpy.data_io import load_parameter_sets
from dosextpy._common import ConfigurationError, ConvergenceError, ParameterError

# =============================================================================
# IMPORT UTILITIES FOR LOGGING AND CONFIGURATIONS
# =============================================================================

from dosextpy.utilities import *
from dosextpy.config import *

# =============================================================================
# SCRIPT PARAMETERS
# =============================================================================

SCRIPT_NAME = 'DOS extraction from quasi-static C-V measurements'

# =============================================================================
# IMPORT INPUT PARAMETERS
# =============================================================================

indata = INPUT_FILE_NAME + '.py'       # INPUT_FILE_NAME defined in dosextpy.config

if not os.path.exists(indata):
    execution_aborted(f"Input file '{indata}' not found", rank=0)

from indata import *

# =============================================================================
# MPI SETUP AND PROCESS INITIALIZATION
# =============================================================================

try:
    from mpi4py import MPI
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    size = comm.Get_size()
except ImportError:
    # If MPI is not available, assume single process
    comm = None
    rank = 0
    size = 1

# =============================================================================
# OUTPUT DIRECTORY SETUP
# =============================================================================

cdir = os.getcwd()
outdata_path = os.path.join(cdir, directory_name)
log_file = os.path.join(outdata_path, LOG_FILE_NAME + ".log")

if rank == 0:
    os.makedirs(os.path.join(outdata_path, plot_subdir), exist_ok=True)
if comm is not None:
    comm.Barrier()

# =============================================================================
# CONFIGURE LOGGING SYSTEM
# =============================================================================

# one log file per process when running in parallel
if size > 1:
    log_file = os.path.join(outdata_path, f"{LOG_FILE_NAME}_{rank}.log")

logging.basicConfig(
    format='[%(asctime)s %(levelname)s] %(message)s',
    filename=log_file,
    datefmt='%H:%M:%S',
    filemode='w',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

# =============================================================================
# INPUTS CONSISTENCY CHECKS
# =============================================================================
def consistency_checks():
    """
    Check the values read from the input file.

    Raises:
        ValueError: If any parameter is invalid
        NameError: If any required parameter is missing from indata

    Note:
        Numerical options are validated again by SimulationSettings.
        Each error is logged with the current value before describing the issue.
    """

    # =========================================================================
    # FILE PARAMETERS VALIDATION
    # =========================================================================

    for name, value in (('parameters_file', parameters_file),
                        ('experimental_file', experimental_file),
                        ('directory_name', directory_name),
                        ('output_prefix', output_prefix)):
        if not isinstance(value, str) or len(value.strip()) == 0:
            logger.error(f"{name} = '{value}' is invalid")
            raise ValueError(f"Invalid {name} - Must be a non-empty string")

    if not isinstance(plot_subdir, str):
        logger.error(f"plot_subdir = '{plot_subdir}' is invalid")
        raise ValueError("Invalid plot_subdir - Must be a string")

    # =========================================================================
    # BOOLEAN FLAGS VALIDATION
    # =========================================================================

    boolean_params = [
        ('skip_headers', skip_headers),
        ('fit_sigma', fit_sigma),
        ('generate_png_graphs', generate_png_graphs),
    ]

    for param_name, param_value in boolean_params:
        if not isinstance(param_value, bool):
            logger.error(f"{param_name} = {param_value} is not boolean")
            raise ValueError(f"Invalid {param_name} - Must be True or False")

# =============================================================================
# MAIN
# =============================================================================
def main():

    if rank == 0:
        print_header(SCRIPT_NAME)
        host_IP()

    try:
        consistency_checks()
        settings = SimulationSettings(
            quadrature_rule=quadrature_rule,
            quadrature_nodes=quadrature_nodes,
            dos_model=dos_model,
            max_iterations=max_iterations,
            tolerance=tolerance,
            negative_shift=negative_shift,
            positive_shift=positive_shift,
            n_splits=n_splits,
            skip_headers=skip_headers,
            threads=threads,
            semic_fraction=semic_fraction,
        )
        for path in (parameters_file, experimental_file):
            if not os.path.exists(path):
                raise FileNotFoundError(f"Input file '{path}' not found")
        parameter_sets = load_parameter_sets(parameters_file, skip_headers)
    except (ValueError, NameError, OSError) as e:
        execution_aborted(e, rank=rank)

    if rank == 0:
        logger.info("")
        logger.info(f"{len(parameter_sets)} parameter set(s) read from {parameters_file}")
        logger.info(FMT_STR.format('Run mode', 'sigma fit' if fit_sigma else 'C-V simulation'))
        logger.info(FMT_STR.format('MPI processes', size))

    # =========================================================================
    # SIMULATIONS, ROUND ROBIN OVER THE PROCESSES
    # =========================================================================

    failed = 0
    for params in parameter_sets[rank::size]:
        prefix = f"{output_prefix}_{params.simulation_no}"
        model = DosModel(params, settings, save_png=generate_png_graphs)
        try:
            if fit_sigma:
                calibration = model.fit(experimental_file, outdata_path, plot_subdir, prefix)
                logger.info(FMT_STR.format(f'No. {params.simulation_no} best sigma (L2) [kT]',
                                           calibration.best_sigma_l2 / params.constants.kb_t))
                logger.info(FMT_STR.format(f'No. {params.simulation_no} best sigma (H1) [kT]',
                                           calibration.best_sigma_h1 / params.constants.kb_t))
            else:
                metrics = model.simulate(experimental_file, outdata_path, plot_subdir, prefix)
                logger.info(FMT_STR.format(f'No. {params.simulation_no} L2-distance', metrics.error_l2))
        except (ConvergenceError, ParameterError) as e:
            # a failed row does not stop the others
            logger.error(f"Simulation No. {params.simulation_no} failed: {e}")
            failed += 1
        except (ConfigurationError, OSError) as e:
            execution_aborted(e, rank=rank)

    if comm is not None:
        failed = comm.allreduce(failed)

    if failed and rank == 0:
        logger.warning(f"{failed} simulation(s) failed, see the _info.txt files")

    if rank == 0:
        logger.info("")
        logger.info(f"Total time: {toc(False):.2f} seconds")

    execution_successful(rank=rank)

# =============================================================================
# SCRIPT EXECUTION ENTRY POINT
# =============================================================================

if __name__ == '__main__':
    tic()
    main()
