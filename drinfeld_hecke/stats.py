# stats.py: phase timings, counters and JSON run summaries
import os
import time
import json
from datetime import datetime, timezone
from collections import defaultdict, Counter


class HeckeStats:
    def __init__(self):
        self.start_time = time.time()
        # Phase timers
        self.phase_times = defaultdict(float)
        self._phase_start = {}
        # Counters
        self.counters = Counter()
        # (q, n, P, weighting) -> mass of the isogeny-class list
        self.masses = {}

        # Initialize all counters
        self.counters.update({
            'candidates_tested': 0,
            'records_ordinary': 0,
            'records_supersingular_1': 0,
            'records_supersingular_2': 0,
            'records_supersingular_3': 0,
            'zero_multiplicity_records': 0,
            'isogeny_cache_hits': 0,
            'traces_evaluated': 0,
            'reconstructions_success': 0,
            'reconstructions_failure': 0,
            'trivial_spaces_skipped': 0,
        })

        # Discard reasons
        self.discard_reasons = Counter()

    # ---------------- Merging ----------------
    def merge(self, other):
        """Merge another HeckeStats object into this one."""
        if not isinstance(other, HeckeStats):
            return
        for phase, t in other.phase_times.items():
            self.phase_times[phase] += t
        self.counters.update(other.counters)
        self.masses.update(other.masses)
        self.discard_reasons.update(other.discard_reasons)

    # ---------------- Timing ----------------
    def start_phase(self, name):
        self._phase_start[name] = time.time()

    def end_phase(self, name):
        if name in self._phase_start:
            dt = time.time() - self._phase_start.pop(name)
            self.phase_times[name] += dt

    # ---------------- Counters ----------------
    def incr(self, key, n=1):
        self.counters[key] += n

    def record_isogeny_list(self, key, records):
        q, n, P_coeffs, weighting = key
        label = f"q={q} n={n} P={list(map(str, P_coeffs))} {weighting}"
        self.masses[label] = sum(int(r.N) for r in records)
        self.counters['zero_multiplicity_records'] += sum(1 for r in records if r.N == 0)

    def record_discard(self, reason):
        self.discard_reasons[reason] += 1

    def record_success(self):
        self.counters['reconstructions_success'] += 1

    def record_failure(self, reason=None):
        self.counters['reconstructions_failure'] += 1
        if reason:
            self.record_discard(reason)

    # ---------------- Summary ----------------
    def summary(self):
        return {
            'elapsed': time.time() - self.start_time,
            'phase_times': dict(self.phase_times),
            'counters': dict(self.counters),
            'masses': dict(self.masses),
            'discard_reasons': dict(self.discard_reasons),
            'success_count': self.counters['reconstructions_success'],
            'failure_count': self.counters['reconstructions_failure'],
        }

    def summary_string(self):
        s = self.summary()
        lines = [f"Total time: {s['elapsed']:.2f}s",
                 f"Characteristic polynomials reconstructed: {s['success_count']}",
                 "\nPhases (s):"]
        if not s['phase_times']:
            lines.append("  (No phases recorded)")
        else:
            for phase, t in sorted(s['phase_times'].items(), key=lambda x: x[1], reverse=True):
                lines.append(f"  {phase:<25}: {t:.2f}s")
        lines.append("\nCounters:")
        for counter, n in sorted(s['counters'].items()):
            lines.append(f"  {counter:<30}: {n}")
        lines.append("\nIsogeny-class masses:")
        if not s['masses']:
            lines.append("  (None)")
        else:
            for label, mass in sorted(s['masses'].items()):
                lines.append(f"  {label:<40}: {mass}")
        lines.append(f"\nSuccesses: {s['success_count']}, Failures: {s['failure_count']}")
        lines.append("Failure Reasons (Top 5):")
        top_discards = sorted(s['discard_reasons'].items(), key=lambda x: x[1], reverse=True)[:5]
        if not top_discards:
            lines.append("  (None)")
        else:
            for reason, count in top_discards:
                lines.append(f"  {reason:<30}: {count}")
        lines.append("-" * 32)
        return "\n".join(lines)


def normalize_summary(run):
    # Expect run to be a dict; coerce Sage values to strings
    out = dict(run)  # shallow copy
    out['run_id'] = out.get('run_id') or datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    out['label'] = str(out.get('label', 'unknown'))
    out['wall_seconds'] = float(out.get('wall_seconds', 0.0))
    # table rows: k, l, charpoly and slopes as strings
    out['rows'] = [
        {
            'k': int(row['k']),
            'l': int(row['l']),
            'dim': int(row.get('dim', 0)),
            'charpoly': str(row.get('charpoly')),
            'slopes': {place: [[str(s), int(m)] for s, m in sl]
                       for place, sl in row.get('slopes', {}).items()},
            'error': row.get('error'),
        }
        for row in out.get('rows', [])
    ]
    out['extra_flags'] = out.get('extra_flags', {})
    return out


def write_run_summary(run_dict, outdir="summaries"):
    s = normalize_summary(run_dict)
    os.makedirs(outdir, exist_ok=True)
    fname = "{label}-{run}.json".format(label=s['label'], run=s['run_id'])
    tmp = os.path.join(outdir, fname + ".tmp")
    final = os.path.join(outdir, fname)
    with open(tmp, "w") as f:
        json.dump(s, f, sort_keys=True, indent=2)
    os.replace(tmp, final)
    print("wrote summary:", final)
    return final
