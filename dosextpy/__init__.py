from ._constants import *
from ._common import *
from .config import SimulationSettings
from .parameters import ParameterSet, PARAMETER_NAMES, PARAMS_NO
from .quadrature import QuadratureRule, build_rule, rule_from_selector
from .physics import GaussianCharge, ExponentialCharge, charge_from_selector
from .alignment import FitMetrics, AlignedCurves, align_curves
from .interface.simulation import CVSimulation, SimulationResult
from .interface.calibration import SigmaCalibration, CalibrationResult, sigma_candidates
from .interface.dos_model import DosModel

try:
    from mpi4py import MPI
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
except ImportError:
    # If MPI is not available, assume single process
    rank = 0

# =============================================================================
# LOGGING SYSTEM SETUP
# =============================================================================
import logging
from datetime import datetime
from importlib import metadata

# =============================================================================
# HEADER
# =============================================================================
def library_header():
    """Output a header for the library to standard output."""

    try:
        pkg_info = metadata.metadata("dosextpy")
        name = pkg_info["Name"]
        version = pkg_info["Version"]
    except metadata.PackageNotFoundError:
        # running from a source tree
        name, version = "dosextpy", "unknown"
    current_date = datetime.now().strftime("%Y-%m-%d")

    header_lines = [
        " ",
        "=" * 80,
        f"{name} v{version} initialized on {current_date}",
        "A Python library for the extraction of the density of states of organic semiconductors",
        "   from quasi-static capacitance-voltage measurements of MIS devices",
        "=" * 80,
    ]

    logger = logging.getLogger(__name__)

    # Print header regardless of logging configuration
    if logger.hasHandlers() or logging.getLogger().hasHandlers():
        for line in header_lines:
            logger.info(line)
    else:
        for line in header_lines:
            print(line)

# Call library_header only on rank 0
if rank == 0:
    library_header()
