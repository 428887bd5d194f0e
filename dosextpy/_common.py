import time
import numpy as np
from multiprocessing.pool import ThreadPool
from scipy.integrate import trapezoid

############################ EXCEPTIONS ##########################

class ConfigurationError(ValueError):
    """Invalid selector, setting or output location; raised before any simulation starts."""


class ParameterError(ValueError):
    """A physical parameter violates its invariant (sign, ordering, count)."""


class ConvergenceError(RuntimeError):
    """The nonlinear Poisson solver did not meet the tolerance within the iteration budget."""

    def __init__(self, message, iterations=None, update_norm=None, voltage=None):
        super().__init__(message)
        self.iterations = iterations
        self.update_norm = update_norm
        self.voltage = voltage


def build_dict(keys, values):
    zip_ite = zip(keys, values)
    return dict(zip_ite)

##################### THREADED CHUNKED EVALUATION #############

# created on first use, one worker per cpu
_default_thread_pool = None


def default_thread_pool():
    global _default_thread_pool
    if _default_thread_pool is None:
        _default_thread_pool = ThreadPool()
    return _default_thread_pool


def chunked_apply(func, samples, pool=None):
    """
    Evaluate func on chunks of a 1-D sample array using a pool of threads.

    The sample array is divided along its only axis into as many chunks as
    the pool has workers; func is applied to every chunk asynchronously and
    the partial results are concatenated back in the original order.
    numpy releases the GIL inside its ufuncs and contractions, so the
    chunks actually run concurrently.

    Args:
        func (callable): maps an array of samples to an array of the same length
        samples (array): 1-D array of samples
        pool: None (default pool), 1 (serial evaluation) or a ThreadPool

    Returns:
        array: func evaluated on every sample
    """
    samples = np.asarray(samples, dtype=float)
    if pool == 1 or samples.size < 2:
        return np.asarray(func(samples), dtype=float)
    if pool is None:
        pool = default_thread_pool()
    if not hasattr(pool, 'apply_async'):
        raise ValueError(f"pool must be None, 1 or a ThreadPool instance, got {pool!r}")
    nproc = pool._processes
    if nproc == 1:
        return np.asarray(func(samples), dtype=float)

    # determining chunk ranges
    chunks = [c for c in np.array_split(samples, nproc) if c.size > 0]
    res = [pool.apply_async(func, args=(c,)) for c in chunks]
    res = [r.get() for r in res]
    return np.concatenate(res)


def quadrature_contract(kernel, weights):
    # sum over quadrature nodes (last axis) of kernel times weights
    return np.einsum('ij,j->i', kernel, weights)

##################### NUMERICS #############

def trapz(y, x=None):
    """Trapezoidal rule, unit spacing when x is None."""
    return float(trapezoid(np.asarray(y, dtype=float), x=None if x is None else np.asarray(x, dtype=float)))

##################### tic() toc() functions #############

def TicTocGenerator():
    # Generator that returns time differences
    ti = 0           # initial time
    tf = time.perf_counter() # final time
    while True:
        ti = tf
        tf = time.perf_counter()
        yield tf-ti # returns the time difference


TicToc = TicTocGenerator() # create an instance of the TicTocGen generator

# This will be the main function through which we define both tic() and toc()
def toc(tempBool=True):
    # Time since the previous tic()/toc() call, printed when tempBool
    tempTimeInterval = next(TicToc)
    if tempBool:
        print( "Elapsed time: %f seconds.\n" %tempTimeInterval )
    return tempTimeInterval

def tic():
    # Records a time in TicToc, marks the beginning of a time interval
    toc(False)
