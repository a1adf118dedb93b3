"""
__init__.py: Exposes key functions from the submodules.
"""
# Expose core configuration and exceptions
from .hecke_config import (
    DEBUG, PROFILE, DEFAULT_WEIGHTING,
    DrinfeldHeckeError, HeckeInputError, ReconstructionError
)

# Combinatorial helpers
from .combinatorics import lucas, hom_sym, cuspdim, canonical_type, trace_sequence_length

# Algebraic substrate
from .substrate import (
    base_rings, validate_prime, valuation_at_place, is_imaginary_root,
    maximal_order_class_number, order_conductor, order_class_number
)

# Pipeline stages
from .isogeny import (
    WeilNumberRecord, enumerate_isogeny_classes, hurwitz_class_number, class_number_of_orders,
    total_multiplicity, clear_isogeny_cache
)
from .trace_formula import (
    trace_from_list, trace_from_roots, hecke_trace, simple_hecke_trace,
    isogeny_data, trace_sequence
)
from .charpoly import char_pol, char_pol_from_list, elementary_symmetric_from_traces
from .slopes import slopes, inf_hecke_slopes, t_hecke_slopes, hecke_slopes
from .stats import HeckeStats, write_run_summary
