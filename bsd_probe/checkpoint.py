"""
checkpoint.py: Durable JSON snapshots of a sweep, keyed by run id.

One file per run, <directory>/sweep-<run_id>.json, rewritten in place (tmp file +
os.replace) every time the driver checkpoints.
"""
import errno
import json
import os
from datetime import datetime, timezone
from typing import NamedTuple, Tuple

from .bsd_config import PersistenceFailure, config_to_dict
from .analyzer import AnalysisResult, result_to_dict, result_from_dict

# errors that will not go away by trying again
STRUCTURAL_ERRNOS = {
    errno.EACCES, errno.EPERM, errno.EROFS, errno.ENOTDIR,
    errno.EISDIR, errno.ENOENT, errno.ENOSPC,
}
if hasattr(errno, 'EDQUOT'):
    STRUCTURAL_ERRNOS.add(errno.EDQUOT)

CHECKPOINT_VERSION = 1


class SweepCheckpoint(NamedTuple):
    run_id: str
    processed_count: int
    results: Tuple[AnalysisResult, ...]
    timestamp: str
    grid: dict


def new_run_id():
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")


def grid_signature(a_range, b_range, config):
    """What a resumed sweep has to match."""
    return {
        'a_range': list(a_range),
        'b_range': list(b_range),
        'config': config_to_dict(config),
    }


def make_checkpoint(run_id, results, grid):
    return SweepCheckpoint(run_id, len(results), tuple(results),
                           datetime.now(timezone.utc).isoformat(), grid)


def is_structural(exc):
    if isinstance(exc, OSError):
        return exc.errno in STRUCTURAL_ERRNOS or exc.errno is None
    return True


class CheckpointStore:
    def __init__(self, directory):
        self.directory = os.fspath(directory)

    def path_for(self, run_id):
        return os.path.join(self.directory, f"sweep-{run_id}.json")

    def save(self, checkpoint):
        """Write the snapshot atomically; any failure comes back as PersistenceFailure."""
        final = self.path_for(checkpoint.run_id)
        tmp = final + ".tmp"
        payload = {
            'version': CHECKPOINT_VERSION,
            'run_id': checkpoint.run_id,
            'processed_count': checkpoint.processed_count,
            'timestamp': checkpoint.timestamp,
            'grid': checkpoint.grid,
            'results': [result_to_dict(r) for r in checkpoint.results],
        }
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(tmp, "w") as f:
                json.dump(payload, f, sort_keys=True, indent=1)
            os.replace(tmp, final)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(f"could not write checkpoint {final}: {e}",
                                     structural=is_structural(e)) from e
        return final

    @staticmethod
    def load(path):
        try:
            with open(path) as f:
                payload = json.load(f)
            results = tuple(result_from_dict(d) for d in payload['results'])
            checkpoint = SweepCheckpoint(payload['run_id'], int(payload['processed_count']),
                                         results, payload['timestamp'], payload['grid'])
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceFailure(f"could not read checkpoint {path}: {e}",
                                     structural=True) from e
        if checkpoint.processed_count != len(checkpoint.results):
            raise PersistenceFailure(
                f"checkpoint {path} is inconsistent: processed_count={checkpoint.processed_count} "
                f"but {len(checkpoint.results)} results", structural=True)
        return checkpoint

    def latest(self):
        """Most recent checkpoint in the directory (run ids sort by time), or None."""
        try:
            names = sorted(n for n in os.listdir(self.directory)
                           if n.startswith("sweep-") and n.endswith(".json"))
        except FileNotFoundError:
            return None
        if not names:
            return None
        return self.load(os.path.join(self.directory, names[-1]))
