"""
hecke_config.py: Central config for the drinfeld_hecke package.

Defines the run constants (DEBUG, worker counts, cache sizes), the default
conventions of the trace formula pipeline, and the exception classes.
"""

# === 1. Standard library imports ===
import multiprocessing
from functools import lru_cache

# === 2. SageMath imports ===
from sage.all import (
    QQ, ZZ, GF, PolynomialRing, FunctionField,
    matrix, vector, binomial, is_prime_power, Infinity
)
from sage.geometry.newton_polygon import NewtonPolygon

# Profile decorator fallback for when line_profiler is not available
try:
    PROFILE = profile
except NameError:
    def profile(func):
        """Default profiler when line_profiler is not available."""
        return func
    PROFILE = profile


# === 3. Run Constants ===
DEBUG = False

# Memoization
DEFAULT_MAX_CACHE_SIZE = 256        # isogeny-class lists kept per process

# Variable names of the base rings
GF_GENERATOR_NAME = 'a'
POLY_VARIABLE = 'T'
CHARPOLY_VARIABLE = 'X'

# Enumerator parallelism
ENUMERATION_WORKERS = min(8, max(1, multiprocessing.cpu_count() // 2))
PARALLEL_MIN_CANDIDATES = 4096      # below this many (z, y) pairs stay serial
ENUMERATION_CHUNK_SIZE = 64         # trace polynomials per worker task

# Conventions
IMAGINARY_REQUIRES_RAMIFICATION = False   # True: infinity must ramify, not just stay prime
DEFAULT_WEIGHTING = 'orders'              # 'orders', 'hurwitz' or 'maximal'
WEIGHTINGS = ('orders', 'hurwitz', 'maximal')

# Output
SUMMARY_DIR = "summaries"


# === 4. Custom Exception Classes ===
class DrinfeldHeckeError(Exception):
    """Base exception for errors in the Hecke trace pipeline."""
    pass

class HeckeInputError(DrinfeldHeckeError, ValueError):
    """Raised when an input violates a precondition (bad q, P, n, k or traces)."""
    pass

class ReconstructionError(DrinfeldHeckeError):
    """Raised when the characteristic-p correction matrix is rank deficient."""

    def __init__(self, k, l, q, rank, expected):
        self.k, self.l, self.q = k, l, q
        self.rank = rank
        self.expected = expected
        super().__init__(
            f"Reconstruction failed for k={k}, l={l}, q={q}: correction matrix has "
            f"rank {rank}, need {expected} (more traces or a non-generic instance)"
        )
