"""
sweep.py: Run analyze_curve over an (a, b) grid.

Cells are visited a ascending (outer), b ascending (inner). Every
checkpoint_interval results the whole result list is written through the
checkpoint store; a sweep can be resumed from that snapshot, cancelled between
cells, or spread over a process pool without changing the output order.
"""
import multiprocessing
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from functools import partial
from typing import NamedTuple, Optional, Tuple

from tqdm import tqdm

from .bsd_config import (
    DEBUG, SweepConfig, CurveRange, InvalidConfig, PersistenceFailure,
    validate_config, make_range, warn
)
from .analyzer import AnalysisResult, analyze_curve
from .checkpoint import grid_signature, is_structural, make_checkpoint, new_run_id
from .sweep_stats import SweepStats, format_eta, summarize_results


class SweepReport(NamedTuple):
    run_id: str
    results: Tuple[AnalysisResult, ...]
    processed_count: int
    total_cells: int
    cancelled: bool
    checkpoint_path: Optional[str]
    summary: dict


def _as_range(r, name):
    if isinstance(r, CurveRange):
        return make_range(*r)
    try:
        start, end, step = r
    except (TypeError, ValueError):
        raise InvalidConfig(f"{name} must be (start, end, step), got {r!r}") from None
    return make_range(start, end, step)


def sweep_cells(a_range, b_range):
    """Grid cells in visiting order."""
    b_values = b_range.values()
    return [(a, b) for a in a_range.values() for b in b_values]


def _analyze_cell(cell, config):
    """Worker entry point; module-level so process pools can pickle it."""
    t0 = time.perf_counter()
    result = analyze_curve(cell[0], cell[1], config, debug=False)
    return result, time.perf_counter() - t0


def _make_executor(max_workers):
    try:
        ctx = multiprocessing.get_context("fork")
        return ProcessPoolExecutor(max_workers=max_workers, mp_context=ctx)
    except (ValueError, OSError) as e:
        # Fall back to threads if 'fork' context unavailable
        if DEBUG:
            print(f"Warning: couldn't start process pool with fork: {e}. Falling back to threads.")
        return ThreadPoolExecutor(max_workers=max_workers)


def _iter_analyses(cells, config, workers, cancel):
    """
    (cell, result, seconds) in cell order. Stops early once cancel is set: before
    each cell when serial, before each chunk of checkpoint_interval cells on a pool.
    """
    if workers <= 1:
        for cell in cells:
            if cancel is not None and cancel.is_set():
                return
            yield (cell,) + _analyze_cell(cell, config)
        return
    chunk = config.checkpoint_interval
    with _make_executor(workers) as executor:
        for start in range(0, len(cells), chunk):
            if cancel is not None and cancel.is_set():
                return
            block = cells[start:start + chunk]
            for cell, (result, seconds) in zip(block, executor.map(partial(_analyze_cell, config=config), block)):
                yield cell, result, seconds


def _check_resume(checkpoint, grid, total):
    if checkpoint.grid != grid:
        raise InvalidConfig(
            f"checkpoint {checkpoint.run_id} was taken for a different grid/config: "
            f"{checkpoint.grid} vs {grid}")
    if checkpoint.processed_count > total:
        raise InvalidConfig(
            f"checkpoint {checkpoint.run_id} has {checkpoint.processed_count} results "
            f"for a grid of {total} cells")


def run_sweep(a_range, b_range, config=None, store=None, run_id=None,
              resume_from=None, cancel=None, exporters=(), workers=1,
              progress=True, debug=DEBUG):
    """
    Analyse every (a, b) cell and return a SweepReport.

    store        -- CheckpointStore (or anything with save(checkpoint) -> path); None disables checkpoints
    resume_from  -- SweepCheckpoint of an earlier run over the same grid and config
    cancel       -- object with is_set(), e.g. threading.Event, polled between cells
    exporters    -- callables given the full result tuple after a complete sweep
    """
    a_range = _as_range(a_range, 'a_range')
    b_range = _as_range(b_range, 'b_range')
    config = validate_config(config if config is not None else SweepConfig())
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise InvalidConfig(f"workers must be a positive integer, got {workers!r}")

    cells = sweep_cells(a_range, b_range)
    total = len(cells)
    grid = grid_signature(a_range, b_range, config)
    interval = config.checkpoint_interval

    results = []
    if resume_from is not None:
        _check_resume(resume_from, grid, total)
        run_id = resume_from.run_id
        results = list(resume_from.results)
    elif run_id is None:
        run_id = new_run_id()

    stats = SweepStats(total, config.eta_window)
    stats.incr('curves_resumed', len(results))
    checkpointing = store is not None
    checkpoint_path = None
    last_saved = len(results)

    def save_checkpoint():
        nonlocal checkpointing, checkpoint_path, last_saved
        stats.start_phase('checkpoint')
        try:
            checkpoint_path = store.save(make_checkpoint(run_id, results, grid))
            last_saved = len(results)
            stats.incr('checkpoints_written')
            if debug:
                tqdm.write(f"[checkpoint] {len(results)}/{total} -> {checkpoint_path}")
        except (PersistenceFailure, OSError) as e:
            if not isinstance(e, PersistenceFailure):
                e = PersistenceFailure(f"checkpoint write failed: {e}", structural=is_structural(e))
            stats.incr('checkpoint_failures')
            if e.structural:
                checkpointing = False
                warn(f"[checkpoint] {e}; checkpointing disabled for run {run_id}", write=tqdm.write)
            else:
                warn(f"[checkpoint] {e}; will retry at the next interval", write=tqdm.write)
        finally:
            stats.end_phase('checkpoint')

    pending = cells[len(results):]
    if debug:
        print(f"[sweep] run {run_id}: {total} cells, {len(pending)} to go, "
              f"max_prime={config.max_prime}, bound={config.bound}, workers={workers}")

    stats.start_phase('analysis')
    try:
        with tqdm(total=total, initial=len(results), desc="BSD sweep",
                  disable=not progress, unit="curve") as pbar:
            for cell, result, seconds in _iter_analyses(pending, config, workers, cancel):
                results.append(result)
                stats.record_curve(cell, seconds, result.verdict)
                pbar.update(1)
                pbar.set_postfix(eta=format_eta(stats.eta_seconds()), refresh=False)

                if checkpointing and len(results) % interval == 0:
                    save_checkpoint()
    except BaseException:
        # keep what was computed before re-raising
        if checkpointing and last_saved != len(results):
            save_checkpoint()
        raise
    stats.end_phase('analysis')
    cancelled = cancel is not None and cancel.is_set() and len(results) < total

    if checkpointing and last_saved != len(results):
        save_checkpoint()

    if cancelled:
        warn(f"[sweep] run {run_id} cancelled after {len(results)}/{total} curves")
    else:
        stats.start_phase('export')
        for exporter in exporters:
            try:
                exporter(tuple(results))
            except Exception as e:
                stats.incr('export_failures')
                warn(f"[export] {getattr(exporter, '__name__', exporter)} failed: {e}")
        stats.end_phase('export')

    if debug:
        print(stats.summary_string())

    summary = summarize_results(results)
    summary['stats'] = stats.summary()
    return SweepReport(run_id, tuple(results), len(results), total, cancelled,
                       checkpoint_path, summary)
