from .mesh import Mesh1D, build_mesh
from .problem import Poisson1D, Bim1D
from .solver import NonLinearPoisson1D, solve
