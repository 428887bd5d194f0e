"""
Configuration constants and simulation settings for the dosextpy library.

These constants control formatting, validation, and the default numerical
options of a simulation run.

Constants:
    I/O and Formatting:
        DLM: Standard delimiter for text output and log spacing
        FMT_STR: Template for consistent log message formatting
        LOG_FILE_NAME: Base name for simulation log files
        INPUT_FILE_NAME: Base name of the scripts input file
        CSV_FLOAT_FMT: Format of floating point numbers in output .csv files

    Validation Tables:
        QUADRATURE_RULES: Valid quadrature rule selectors
        DOS_MODELS: Valid density of states model selectors

    Defaults:
        DEFAULT_SETTINGS: Default value of every SimulationSettings option

Classes:
    SimulationSettings: validated set of numerical options consumed by the
        simulation driver and the calibration loop
"""

import logging

from dosextpy._common import ConfigurationError

logger = logging.getLogger(__name__)

# =============================================================================
# INPUT/OUTPUT FORMATTING CONSTANTS
# =============================================================================

DLM = '   '                              # Delimiter for text files and log spacings

FMT_STR = "   {:<30} : {}"               # Log message formatting template with two
                                         # placeholders, 1st 30 char, left justified

LOG_FILE_NAME = 'logfile'                # Base name for log file (without extension)

INPUT_FILE_NAME = 'indata'               # Base name of the scripts input file (without extension)

CSV_FLOAT_FMT = '{:.15e}'                # Scientific notation, 15 significant digits

# =============================================================================
# VALIDATION CONSTANTS
# =============================================================================

QUADRATURE_RULES = {                     # Quadrature rule selector
    0: 'GaussLaguerre',                  # - 0: half line, weight exp(-x)
    1: 'GaussHermite',                   # - 1: real line, weight exp(-x^2)
}

DOS_MODELS = {                           # Density of states selector
    0: 'Exponential',                    # - 0: single exponential tail
    1: 'Gaussian',                       # - 1: up to four gaussians
}

# =============================================================================
# DEFAULT OPTIONS
# =============================================================================

DEFAULT_SETTINGS = {
    'quadrature_rule': 1,                # Gauss-Hermite
    'quadrature_nodes': 101,             # Number of quadrature nodes
    'dos_model': 1,                      # Gaussian DOS
    'max_iterations': 100,               # Newton iterations per bias step
    'tolerance': 1.0e-4,                 # Newton tolerance on the potential update [V]
    'negative_shift': 1.0,               # Calibration budget below sigma [kT]
    'positive_shift': 1.0,               # Calibration budget above sigma [kT]
    'n_splits': 5,                       # Candidates on each side of sigma
    'skip_headers': True,                # Skip first row of the experimental file
    'threads': None,                     # None: one thread per cpu, 1: serial
    'semic_fraction': 0.6,               # Share of mesh nodes in the semiconductor
}

# Section/key names accepted by SimulationSettings.from_mapping
OPTION_ALIASES = {
    'QuadratureRule/method': 'quadrature_rule',
    'QuadratureRule/nNodes': 'quadrature_nodes',
    'DOS': 'dos_model',
    'NLP/maxIterationsNo': 'max_iterations',
    'NLP/tolerance': 'tolerance',
    'FIT/negative_shift': 'negative_shift',
    'FIT/positive_shift': 'positive_shift',
    'FIT/nSplits': 'n_splits',
    'skipHeaders': 'skip_headers',
}


class SimulationSettings:
    """
    Numerical options of a simulation or calibration run.

    Every option defaults to the corresponding DEFAULT_SETTINGS entry.
    Settings are validated on construction; any invalid value raises
    ConfigurationError before a simulation can start.
    """

    def __init__(self, **options):
        unknown = set(options) - set(DEFAULT_SETTINGS)
        if unknown:
            raise ConfigurationError(f"unknown option(s): {sorted(unknown)}")

        values = dict(DEFAULT_SETTINGS)
        values.update(options)

        self.quadrature_rule = values['quadrature_rule']
        self.quadrature_nodes = values['quadrature_nodes']
        self.dos_model = values['dos_model']
        self.max_iterations = values['max_iterations']
        self.tolerance = values['tolerance']
        self.negative_shift = values['negative_shift']
        self.positive_shift = values['positive_shift']
        self.n_splits = values['n_splits']
        self.skip_headers = bool(values['skip_headers'])
        self.threads = values['threads']
        self.semic_fraction = values['semic_fraction']

        self._check()

    @classmethod
    def from_mapping(cls, mapping):
        """
        Build settings from a mapping, accepting both option names and
        Section/key names (e.g. 'NLP/tolerance').
        """
        options = {}
        for key, value in mapping.items():
            name = OPTION_ALIASES.get(key, key)
            if name in options:
                raise ConfigurationError(f"option '{name}' given twice")
            options[name] = value
        return cls(**options)

    def as_dict(self):
        return {key: getattr(self, key) for key in DEFAULT_SETTINGS}

    def _check(self):
        if self.quadrature_rule not in QUADRATURE_RULES:
            logger.error(f"You entered quadrature_rule = {self.quadrature_rule}")
            raise ConfigurationError(
                f"wrong quadrature rule selector (only {sorted(QUADRATURE_RULES)} allowed)")

        if self.dos_model not in DOS_MODELS:
            logger.error(f"You entered dos_model = {self.dos_model}")
            raise ConfigurationError(
                f"wrong DOS model selector (only {sorted(DOS_MODELS)} allowed)")

        if not (_is_int(self.quadrature_nodes) and self.quadrature_nodes > 0):
            logger.error(f"You entered quadrature_nodes = {self.quadrature_nodes}")
            raise ConfigurationError("quadrature_nodes must be a positive integer.")

        if not (_is_int(self.max_iterations) and self.max_iterations > 0):
            logger.error(f"You entered max_iterations = {self.max_iterations}")
            raise ConfigurationError("max_iterations must be a positive integer.")

        if not (isinstance(self.tolerance, (int, float)) and self.tolerance > 0):
            logger.error(f"You entered tolerance = {self.tolerance}")
            raise ConfigurationError("tolerance must be a positive number.")

        for name in ('negative_shift', 'positive_shift'):
            value = getattr(self, name)
            if not (isinstance(value, (int, float)) and value > 0):
                logger.error(f"You entered {name} = {value}")
                raise ConfigurationError(f"{name} must be a positive number.")

        if not (_is_int(self.n_splits) and self.n_splits >= 2):
            logger.error(f"You entered n_splits = {self.n_splits}")
            raise ConfigurationError("n_splits must be an integer >= 2.")

        if not (isinstance(self.semic_fraction, (int, float)) and 0.0 < self.semic_fraction < 1.0):
            logger.error(f"You entered semic_fraction = {self.semic_fraction}")
            raise ConfigurationError("semic_fraction must be in (0, 1).")

        if self.threads is not None and not (_is_int(self.threads) and self.threads > 0):
            logger.error(f"You entered threads = {self.threads}")
            raise ConfigurationError("threads must be None or a positive integer.")

    def __repr__(self):
        items = ', '.join(f"{k}={v!r}" for k, v in self.as_dict().items())
        return f"SimulationSettings({items})"


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)
