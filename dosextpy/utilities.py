"""
Utility Functions for scripts based on the dosextpy library.

This module provides utility functions for logging, error handling,
and system information display shared by the library and its scripts.

Functions:
    execution_aborted: Handle fatal errors and exit gracefully
    execution_successful: Log successful completion
    host_IP: Log hostname and IP for distributed debugging
    print_header: Create formatted header for the script
    info_log: Context manager copying the log records of a run to a file
    log_parameter_set: Display the device and sweep parameters
    log_simulation_settings: Display the numerical options
    log_fit_metrics: Display shift and distances of an alignment
"""

from contextlib import contextmanager
from datetime import datetime            # Date/time stamps for logs
import logging                          # For structured log output
import socket                           # For network debugging information
import sys                              # System-specific parameters and functions

from dosextpy.config import DLM, FMT_STR, QUADRATURE_RULES, DOS_MODELS

# Initialize module logger for consistent formatting
logger = logging.getLogger(__name__)

# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def execution_aborted(e, rank=0):
    """
    Log the exception that stopped the run and exit with error code 1.

    Args:
        e (Exception or str): The exception or error message that caused the execution to abort
        rank (int): MPI rank of the caller, only rank 0 logs
    """
    if rank == 0:
        logger.error(f"{str(e)}")
        logger.error("Execution aborted.")

    # ALL processes exit with error code
    sys.exit(1)


def execution_successful(rank=0):
    """
    Log successful completion of the run and exit with code 0.

    NOTE: All MPI processes must reach this function for proper termination.
    """
    if rank == 0:
        logger.info("")
        logger.info('Normal successful completion.')
        print('Normal successful completion.')

    sys.exit(0)


def host_IP():
    """
    Log hostname and IP address for debugging distributed calculations.

    Note:
        Network resolution failures only produce a warning.
    """
    try:
        hname = socket.gethostname()
        hip = socket.gethostbyname(hname)
        logger.info(f'{DLM}Hostname       : {hname}')
        logger.info(f"{DLM}IP Address     : {hip}")
    except OSError:
        # Network resolution can fail in some cluster environments
        logger.warning("Unable to get hostname and IP address")


def print_header(script_name):
    """
    Print formatted header with script name and execution date.

    Args:
        script_name (str): Name of the script being executed
    """
    BAR_LENGTH = 80                      # Total width of header bar

    current_date = datetime.now().strftime("%Y-%m-%d")

    # center the script name
    shift = (BAR_LENGTH - len(script_name)) // 2

    logger.info('=' * BAR_LENGTH)
    logger.info(f'{" " * shift}{script_name}')
    logger.info(f'{" " * shift}Running on {current_date}')
    logger.info('=' * BAR_LENGTH)


@contextmanager
def info_log(path, level=logging.INFO):
    """
    Copy every record emitted by the dosextpy loggers to the file at path
    while the block runs. The file is truncated on entry.

    Raises:
        OSError: the file cannot be opened
    """
    handler = logging.FileHandler(path, mode='w', encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('%(message)s'))

    root = logging.getLogger('dosextpy')
    old_level = root.level
    if root.getEffectiveLevel() > level:
        root.setLevel(level)
    root.addHandler(handler)
    try:
        yield handler
    finally:
        root.removeHandler(handler)
        root.setLevel(old_level)
        handler.close()


def log_parameter_set(params):
    """
    Log the parameters of a run in user units (kT, eV, relative permittivities).

    Args:
        params (ParameterSet): parameter snapshot
    """
    kt = params.constants.kb_t
    q = params.constants.q
    eps0 = params.constants.eps0

    logger.info("")
    logger.info(f"Parameters of simulation No. {params.simulation_no}")
    logger.info(FMT_STR.format('Semiconductor thickness [m]', params.t_semic))
    logger.info(FMT_STR.format('Insulator thickness [m]', params.t_ins))
    logger.info(FMT_STR.format('Semiconductor permittivity', params.eps_semic / eps0))
    logger.info(FMT_STR.format('Insulator permittivity', params.eps_ins / eps0))
    logger.info(FMT_STR.format('Temperature [K]', params.temperature))
    logger.info(FMT_STR.format('Work function [eV]', params.wf / q))
    logger.info(FMT_STR.format('Electron affinity [eV]', params.ea / q))

    for k, (n0, sigma, shift) in enumerate(params.gaussian_components(), start=1):
        logger.info(FMT_STR.format(f'Gaussian {k}: N0 [m^-3]', n0))
        logger.info(FMT_STR.format(f'Gaussian {k}: sigma [kT]', sigma / kt))
        if k > 1:
            logger.info(FMT_STR.format(f'Gaussian {k}: shift [V]', shift))

    if params.n0_exp > 0.0:
        logger.info(FMT_STR.format('Exponential: N0 [m^-3]', params.n0_exp))
        logger.info(FMT_STR.format('Exponential: lambda [kT]', params.lambda_exp / kt))

    logger.info(FMT_STR.format('Device area [m^2]', params.a_semic))
    logger.info(FMT_STR.format('Stray capacitance [F]', params.c_sb))
    logger.info(FMT_STR.format('Mesh nodes', params.n_nodes))
    logger.info(FMT_STR.format('Bias steps', params.n_steps))
    logger.info(FMT_STR.format('Gate voltage range [V]', f"[{params.v_min}, {params.v_max}]"))


def log_simulation_settings(settings):
    """
    Log the numerical options of a run.

    Args:
        settings (SimulationSettings): numerical options
    """
    logger.info("")
    logger.info("Numerical options")
    logger.info(FMT_STR.format('Quadrature rule', QUADRATURE_RULES[settings.quadrature_rule]))
    logger.info(FMT_STR.format('Quadrature nodes', settings.quadrature_nodes))
    logger.info(FMT_STR.format('DOS model', DOS_MODELS[settings.dos_model]))
    logger.info(FMT_STR.format('Newton max iterations', settings.max_iterations))
    logger.info(FMT_STR.format('Newton tolerance', settings.tolerance))
    logger.info(FMT_STR.format('Semiconductor mesh fraction', settings.semic_fraction))
    logger.info(FMT_STR.format('Threads', 'auto' if settings.threads is None else settings.threads))


def log_fit_metrics(metrics, center_of_charge=None):
    """
    Log the outcome of one alignment.

    Args:
        metrics (FitMetrics): shift, anchors and distances
        center_of_charge (float): centroid of the electron density [m], optional
    """
    logger.info("")
    logger.info(f"V_shift = {metrics.v_shift}")
    if center_of_charge is not None:
        logger.info(f"Center of charge = {center_of_charge}")
    logger.info(f"C_acc* = {metrics.c_acc_star}")
    logger.info("")
    logger.info("Distance between experimental and simulated capacitance values:")
    logger.info(f"{DLM}L2-distance = {metrics.error_l2}")
    logger.info(f"{DLM}H1-distance = {metrics.error_h1}")
