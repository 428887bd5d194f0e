# =============================================================================
# DENSITY OF STATES EXTRACTION FROM C-V MEASUREMENTS - INPUT PARAMETERS
# =============================================================================

# This file contains all the parameters needed to simulate the quasi-static
# C-V curve of a MIS device and compare it with experimental data

# =============================================================================
# INPUT / OUTPUT CONFIGURATION
# =============================================================================

# Comma separated file, one row of 27 device and sweep parameters per simulation
# Order: simulation No., t_semic [m], t_ins [m], eps_semic, eps_ins, T [K],
#        Wf [eV], Ea [eV], N0 [m^-3], sigma [kT], N0_2, sigma_2, shift_2 [V],
#        N0_3, sigma_3, shift_3, N0_4, sigma_4, shift_4, N0_exp [m^-3],
#        lambda_exp [kT], A [m^2], C_sb [F], mesh nodes, bias steps,
#        V_min [V], V_max [V]
parameters_file = './parameters.csv'

# Comma separated experimental data, rows of (index, V [V], C [F])
experimental_file = './experimental.csv'

# Directory where all generated files will be saved
directory_name = './outdata'        # relative to the script location

# Subdirectory of directory_name for gnuplot scripts
plot_subdir = 'plots'

# Prefix of the output files, the simulation number is appended
output_prefix = 'simulation'

# Skip the first row of the input files
skip_headers = True

# =============================================================================
# RUN MODE
# =============================================================================

# False: one C-V simulation per parameter row
# True: automatic fit of the 1st gaussian width sigma for every row
fit_sigma = False

# Save .png figures next to the gnuplot scripts
generate_png_graphs = True

# =============================================================================
# NUMERICAL PARAMETERS
# =============================================================================

# Quadrature rule: 0 = Gauss-Laguerre, 1 = Gauss-Hermite
quadrature_rule = 1
quadrature_nodes = 101

# DOS model: 0 = exponential, 1 = gaussian
dos_model = 1

# Newton solver for the nonlinear Poisson equation
max_iterations = 100
tolerance = 1.0e-4

# Fraction of the mesh nodes in the semiconductor layer
semic_fraction = 0.6

# Threads used for the charge evaluation, None = all cores
threads = None

# =============================================================================
# SIGMA FIT PARAMETERS (used only if fit_sigma = True)
# =============================================================================

# Search interval around the initial sigma, in units of kT
negative_shift = 1.0
positive_shift = 1.0

# Points on each side of the initial sigma
n_splits = 5

# =============================================================================
# USAGE NOTES
# =============================================================================

# Run with
#     python main.py
# or, distributing the parameter rows over MPI processes,
#     mpirun -np 4 python main.py
#
# For every row the following files are produced in directory_name:
# - <prefix>_<No>_info.txt     log of the run
# - <prefix>_<No>_CV.csv       experimental and simulated C-V curves
# - <prefix>_<No>_plot.png     C-V and dC/dV plot
# and the gnuplot script <prefix>_<No>_plot.gp in plot_subdir.
# With fit_sigma = True the C-V files of each candidate get an extra _<n>
# suffix and <prefix>_<No>_fitting.csv collects the errors.
