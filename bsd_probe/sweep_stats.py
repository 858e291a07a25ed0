# sweep_stats.py
import time
import json
import math
from collections import defaultdict, Counter, deque

from .bsd_config import DEFAULT_ETA_WINDOW, VERDICTS, ERRORED


class SweepStats:
    def __init__(self, total_cells, eta_window=DEFAULT_ETA_WINDOW):
        self.start_time = time.time()
        self.total_cells = int(total_cells)
        # Phase timers
        self.phase_times = defaultdict(float)
        self._phase_start = {}
        # Counters
        self.counters = Counter()
        self.counters.update({
            'curves_processed': 0,
            'curves_resumed': 0,
            'curves_errored': 0,
            'checkpoints_written': 0,
            'checkpoint_failures': 0,
            'export_failures': 0,
        })
        # per-curve wall times, most recent eta_window of them
        self.recent_times = deque(maxlen=eta_window)
        self.slowest = (0.0, None)

    # ---------------- Timing ----------------
    def start_phase(self, name):
        self._phase_start[name] = time.time()

    def end_phase(self, name):
        if name in self._phase_start:
            dt = time.time() - self._phase_start.pop(name)
            self.phase_times[name] += dt

    def record_curve(self, params, seconds, verdict):
        self.counters['curves_processed'] += 1
        if verdict == ERRORED:
            self.counters['curves_errored'] += 1
        self.recent_times.append(seconds)
        if seconds > self.slowest[0]:
            self.slowest = (seconds, tuple(params))

    # ---------------- Counters ----------------
    def incr(self, key, n=1):
        self.counters[key] += n

    @property
    def done(self):
        return self.counters['curves_processed'] + self.counters['curves_resumed']

    # ---------------- Projection ----------------
    def moving_average(self):
        if not self.recent_times:
            return None
        return sum(self.recent_times) / len(self.recent_times)

    def eta_seconds(self):
        """Moving average of per-curve cost times the cells still to do."""
        avg = self.moving_average()
        if avg is None:
            return None
        return avg * max(0, self.total_cells - self.done)

    # ---------------- Summary ----------------
    def summary(self):
        return {
            'elapsed': time.time() - self.start_time,
            'total_cells': self.total_cells,
            'phase_times': dict(self.phase_times),
            'counters': dict(self.counters),
            'avg_curve_seconds': self.moving_average(),
            'eta_seconds': self.eta_seconds(),
            'slowest_curve': {'seconds': self.slowest[0], 'params': self.slowest[1]},
        }

    def summary_string(self):
        s = self.summary()
        lines = [f"Total time: {s['elapsed']:.2f}s",
                 f"Curves: {self.done}/{s['total_cells']}"]
        if s['avg_curve_seconds'] is not None:
            lines.append(f"Avg per curve (last {len(self.recent_times)}): {s['avg_curve_seconds']:.4f}s")
        if s['slowest_curve']['params'] is not None:
            lines.append(f"Slowest curve: {s['slowest_curve']['params']} "
                         f"({s['slowest_curve']['seconds']:.3f}s)")
        lines.append("\nPhases (s):")
        if not s['phase_times']:
            lines.append("  (No phases recorded)")
        else:
            for phase, t in sorted(s['phase_times'].items(), key=lambda x: x[1], reverse=True):
                lines.append(f"  {phase:<25}: {t:.2f}s")
        lines.append("\nCounters:")
        for counter, n in sorted(s['counters'].items()):
            lines.append(f"  {counter:<30}: {n}")
        lines.append("-" * 32)
        return "\n".join(lines)


def format_eta(seconds):
    if seconds is None:
        return "?"
    seconds = int(round(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}h{m:02d}m"
    if m:
        return f"{m}m{s:02d}s"
    return f"{s}s"


def summarize_results(results):
    """
    Aggregates the summary plots are drawn from: verdict and rank distributions,
    L-value range, and the rank over the (a, b) grid.
    """
    verdicts = Counter({v: 0 for v in VERDICTS})
    verdicts.update(r.verdict for r in results)
    ranks = Counter(r.rank_estimate for r in results if r.verdict != ERRORED)
    l_values = [r.l_value for r in results
                if r.verdict != ERRORED and math.isfinite(r.l_value)]
    rank_grid = {f"{r.params.a},{r.params.b}": r.rank_estimate
                 for r in results if r.verdict != ERRORED}
    return {
        'curves': len(results),
        'verdicts': dict(verdicts),
        'rank_distribution': {int(k): v for k, v in sorted(ranks.items())},
        'l_value_min': min(l_values) if l_values else None,
        'l_value_max': max(l_values) if l_values else None,
        'l_value_vs_rank': [(r.l_value, r.rank_estimate) for r in results
                            if r.verdict != ERRORED],
        'rank_grid': rank_grid,
        'errors': verdicts[ERRORED],
    }


def write_summary(summary, path):
    with open(path, 'w') as fh:
        json.dump(summary, fh, indent=2, default=str)
