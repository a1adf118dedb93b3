"""
Slope tables for Hecke operators on Drinfeld cusp forms

For a prime P of GF(q)[T] this script enumerates the weighted isogeny-class
lists for P^1..P^N once, then evaluates, for every weight k and type l in the
requested range with S_{k,l} nonzero, the characteristic polynomial of T_P and
the valuations of its roots at infinity and/or at T = 0.

Usage:
    python hecke_slopes.py --q 3 --P 0,1 --kmin 2 --kmax 40 --place both
"""

# Standard library imports
import sys
import time
import argparse
from concurrent.futures import as_completed

# Third-party imports
from tqdm import tqdm
from colorama import Fore, Style

# Local imports
from drinfeld_hecke.hecke_config import (
    DEBUG, DEFAULT_WEIGHTING, WEIGHTINGS, ENUMERATION_WORKERS, SUMMARY_DIR,
    HeckeInputError, ReconstructionError
)
from drinfeld_hecke.combinatorics import cuspdim, canonical_type, trace_sequence_length
from drinfeld_hecke.substrate import validate_prime
from drinfeld_hecke.trace_formula import isogeny_data
from drinfeld_hecke.charpoly import char_pol
from drinfeld_hecke.slopes import inf_hecke_slopes, t_hecke_slopes
from drinfeld_hecke.isogeny import make_executor, total_multiplicity
from drinfeld_hecke.stats import HeckeStats, write_run_summary


PLACES = {
    'inf': ('inf',),
    'T': ('T',),
    'both': ('inf', 'T'),
}


def parse_coefficients(text):
    """'0,1' -> [0, 1] (low to high degree)."""
    try:
        return [int(c) for c in text.split(',') if c.strip()]
    except ValueError:
        raise HeckeInputError(f"could not parse coefficient list {text!r}")


def weight_type_grid(q, kmin, kmax, types=None, stats=None):
    """All (k, l) with kmin <= k <= kmax, l in types (default 1..q-1) and S_{k,l} != 0."""
    if types is None:
        types = range(1, q)
    types = sorted({canonical_type(l, q) for l in types})
    grid = []
    for k in range(max(2, kmin), kmax + 1):
        for l in types:
            if cuspdim(k, l, q):
                grid.append((k, l))
            elif stats is not None:
                stats.incr('trivial_spaces_skipped')
    return grid


def compute_row(args):
    """
    Characteristic polynomial and slopes for one (k, l). Runs in a forked worker
    whose isogeny cache was filled by the parent; the row carries the worker's
    HeckeStats under 'stats'.
    """
    k, l, q, P_coeffs, places, weighting = args
    row_stats = HeckeStats()
    row = {'k': k, 'l': l, 'dim': cuspdim(k, l, q), 'slopes': {}, 'error': None, 'stats': row_stats}
    try:
        f = char_pol(k, l, q, P_coeffs, weighting=weighting, num_workers=1, stats=row_stats)
    except ReconstructionError as e:
        row_stats.record_failure(reason='rank deficient')
        row['charpoly'] = None
        row['error'] = str(e)
        return row
    row_stats.record_success()
    row['charpoly'] = str(f)
    for place in places:
        sl = inf_hecke_slopes(f) if place == 'inf' else t_hecke_slopes(f)
        row['slopes'][place] = [(str(s), int(m)) for s, m in sl]
    return row


def format_row(row):
    head = f"k={row['k']:<4} l={row['l']:<3} dim={row['dim']:<3}"
    if row['error']:
        return f"{Fore.RED}{head} reconstruction failed: {row['error']}{Style.RESET_ALL}"
    parts = [head]
    for place, sl in row['slopes'].items():
        parts.append(f"{place}: " + ", ".join(f"{s}^{m}" for s, m in sl))
    return "  ".join(parts)


def run_table(q, P, kmin, kmax, types=None, place='inf', weighting=DEFAULT_WEIGHTING,
              num_workers=ENUMERATION_WORKERS, stats=None, debug=DEBUG):
    """Compute the slope table; returns the list of row dicts in (k, l) order."""
    if stats is None:
        stats = HeckeStats()
    P = validate_prime(P, q)
    grid = weight_type_grid(q, kmin, kmax, types, stats=stats)
    if not grid:
        print("No weight/type in range has a nonzero cusp form space.")
        return []

    # Isogeny data for every power of T_P the grid needs, computed once
    n_max = max(trace_sequence_length(k, l, q) for k, l in grid)
    print(f"--- Enumerating isogeny classes for P={P}, n=1..{n_max} ---")
    data = isogeny_data(q, P, n_max, weighting=weighting, num_workers=num_workers,
                        stats=stats, progress=True, debug=debug)
    for n, lst in data.items():
        print(f"  n={n}: {len(lst) - 1} Weil polynomials, {total_multiplicity(lst)} isomorphism classes")

    stats.start_phase('charpoly_and_slopes')
    args_list = [(k, l, q, tuple(P.list()), PLACES[place], weighting) for k, l in grid]
    rows = [None] * len(args_list)
    desc = f"{Fore.CYAN}Characteristic polynomials{Style.RESET_ALL}"
    if num_workers > 1:
        with make_executor(num_workers) as executor:
            futures = {executor.submit(compute_row, args): idx for idx, args in enumerate(args_list)}
            for future in tqdm(as_completed(futures), total=len(futures), desc=desc):
                rows[futures[future]] = future.result()
    else:
        for idx, args in enumerate(tqdm(args_list, desc=desc)):
            rows[idx] = compute_row(args)
    stats.end_phase('charpoly_and_slopes')

    for row in rows:
        stats.merge(row.pop('stats'))
    return rows


def build_parser():
    parser = argparse.ArgumentParser(description="Newton slopes of Hecke operators on Drinfeld cusp forms")
    parser.add_argument('--q', type=int, required=True, help="size of the constant field")
    parser.add_argument('--P', default='0,1', help="coefficients of P, low to high (default T)")
    parser.add_argument('--kmin', type=int, default=2)
    parser.add_argument('--kmax', type=int, required=True)
    parser.add_argument('--types', default=None, help="comma separated types (default all)")
    parser.add_argument('--place', choices=sorted(PLACES), default='inf')
    parser.add_argument('--weighting', choices=WEIGHTINGS, default=DEFAULT_WEIGHTING)
    parser.add_argument('--workers', type=int, default=ENUMERATION_WORKERS)
    parser.add_argument('--summary', nargs='?', const=SUMMARY_DIR, default=None,
                        help="write a JSON run summary to this directory")
    parser.add_argument('--debug', action='store_true')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    t0 = time.time()
    stats = HeckeStats()
    try:
        P = parse_coefficients(args.P)
        types = parse_coefficients(args.types) if args.types else None
        rows = run_table(args.q, P, args.kmin, args.kmax, types=types, place=args.place,
                         weighting=args.weighting, num_workers=args.workers,
                         stats=stats, debug=args.debug or DEBUG)
    except HeckeInputError as e:
        print(f"{Fore.RED}error: {e}{Style.RESET_ALL}", file=sys.stderr)
        return 2

    print()
    for row in rows:
        print(format_row(row))
    print()
    print(stats.summary_string())

    if args.summary:
        write_run_summary({
            'label': f"q{args.q}-P{args.P.replace(',', '_')}",
            'wall_seconds': time.time() - t0,
            'rows': rows,
            'stats': stats.summary(),
            'extra_flags': {'place': args.place, 'weighting': args.weighting},
        }, outdir=args.summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
