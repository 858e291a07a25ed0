"""
cli.py: Command line entry point.

    bsd-probe curve -5 5
    bsd-probe sweep -3 3 1 -3 3 1 --checkpoint-dir runs --interval 10
    bsd-probe sweep -3 3 1 -3 3 1 --checkpoint-dir runs --resume latest
"""
import argparse
import sys

from colorama import Fore, Style

from .bsd_config import (
    DEFAULT_BOUND, DEFAULT_STEP, DEFAULT_MAX_PRIME, DEFAULT_TOLERANCE,
    DEFAULT_CHECKPOINT_INTERVAL, RESIDUE_TESTS, DEFAULT_RESIDUE_TEST, CONSISTENT,
    InvalidConfig, PersistenceFailure, make_config, warn
)
from .analyzer import analyze_curve
from .checkpoint import CheckpointStore
from .sweep import run_sweep
from .sweep_stats import write_summary


def _number(text):
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bsd-probe",
        description="Numerical BSD consistency checks for y^2 = x^3 + ax + b.")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--bound", type=_number, default=DEFAULT_BOUND, help="point search |x| bound")
    common.add_argument("--step", type=_number, default=DEFAULT_STEP, help="point search x step")
    common.add_argument("--max-prime", type=int, default=DEFAULT_MAX_PRIME, help="Euler product cutoff")
    common.add_argument("--tolerance", type=float, default=DEFAULT_TOLERANCE)
    common.add_argument("--residue-test", choices=RESIDUE_TESTS, default=DEFAULT_RESIDUE_TEST)
    common.add_argument("--time-budget", type=float, default=None, help="seconds per curve")
    common.add_argument("--debug", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    p_curve = sub.add_parser("curve", parents=[common], help="analyse one curve")
    p_curve.add_argument("a", type=_number)
    p_curve.add_argument("b", type=_number)

    p_sweep = sub.add_parser("sweep", parents=[common], help="analyse an (a, b) grid")
    for name in ("a_start", "a_end", "a_step", "b_start", "b_end", "b_step"):
        p_sweep.add_argument(name, type=_number)
    p_sweep.add_argument("--interval", type=int, default=DEFAULT_CHECKPOINT_INTERVAL,
                         help="checkpoint every N curves")
    p_sweep.add_argument("--checkpoint-dir", default=None)
    p_sweep.add_argument("--resume", default=None,
                         help="checkpoint file to resume from, or 'latest' in --checkpoint-dir")
    p_sweep.add_argument("--workers", type=int, default=1)
    p_sweep.add_argument("--summary", default=None, help="write the sweep summary JSON here")
    p_sweep.add_argument("--no-progress", action="store_true")
    return parser


def _config_from_args(args, interval=DEFAULT_CHECKPOINT_INTERVAL):
    return make_config(bound=args.bound, step=args.step, max_prime=args.max_prime,
                       tolerance=args.tolerance, checkpoint_interval=interval,
                       residue_test=args.residue_test, curve_time_budget=args.time_budget)


def _print_result(r):
    colour = Fore.GREEN if r.verdict == CONSISTENT else Fore.RED
    print(f"Curve: y^2 = x^3 + ({r.params.a})x + ({r.params.b})")
    print(f"  points ({len(r.points)}): {[tuple(P) for P in r.points]}")
    print(f"  rank estimate: {r.rank_estimate}")
    print(f"  L(E,1) ~ {r.l_value:.8g} over {len(r.primes_used)} primes")
    print(f"  verdict: {colour}{r.verdict}{Style.RESET_ALL}")
    if r.error:
        print(f"  error: {r.error}")


def _cmd_curve(args):
    config = _config_from_args(args)
    _print_result(analyze_curve(args.a, args.b, config, debug=args.debug))
    return 0


def _cmd_sweep(args):
    config = _config_from_args(args, interval=args.interval)
    store = CheckpointStore(args.checkpoint_dir) if args.checkpoint_dir else None
    resume_from = None
    if args.resume == 'latest':
        if store is None:
            raise InvalidConfig("--resume latest needs --checkpoint-dir")
        resume_from = store.latest()
        if resume_from is None:
            warn(f"[sweep] no checkpoint in {args.checkpoint_dir}; starting fresh")
    elif args.resume:
        resume_from = CheckpointStore.load(args.resume)

    report = run_sweep((args.a_start, args.a_end, args.a_step),
                       (args.b_start, args.b_end, args.b_step),
                       config, store=store, resume_from=resume_from,
                       workers=args.workers, progress=not args.no_progress,
                       debug=args.debug)
    s = report.summary
    print(f"run {report.run_id}: {report.processed_count}/{report.total_cells} curves"
          f"{' (cancelled)' if report.cancelled else ''}")
    print(f"  verdicts: {s['verdicts']}")
    print(f"  rank distribution: {s['rank_distribution']}")
    if report.checkpoint_path:
        print(f"  checkpoint: {report.checkpoint_path}")
    if args.summary:
        write_summary(s, args.summary)
        print(f"  summary: {args.summary}")
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        if args.command == "curve":
            return _cmd_curve(args)
        return _cmd_sweep(args)
    except InvalidConfig as e:
        warn(f"invalid configuration: {e}", fatal=True)
        return 2
    except PersistenceFailure as e:
        warn(f"{e}", fatal=True)
        return 1
    except KeyboardInterrupt:
        warn("interrupted", fatal=True)
        return 130


if __name__ == "__main__":
    sys.exit(main())
