import threading

from .models import PipelineRun

# In-memory only: runs live as long as the process, oldest dropped past the cap.
MAX_RUNS = 500

_lock = threading.Lock()
_runs: dict[str, PipelineRun] = {}
_push_index: dict[str, str] = {}


def _evict_oldest() -> None:
    while len(_runs) > MAX_RUNS:
        oldest_id = next(iter(_runs))
        del _runs[oldest_id]
        for key in [k for k, rid in _push_index.items() if rid == oldest_id]:
            del _push_index[key]


def claim_push(push_key: str | None, run: PipelineRun) -> PipelineRun | None:
    """Register ``run`` for a push, or return the run that push already started."""
    with _lock:
        if push_key:
            existing_id = _push_index.get(push_key)
            if existing_id:
                return _runs[existing_id]
            _push_index[push_key] = run.run_id
        _runs[run.run_id] = run
        _evict_oldest()
        return None


def get_run(run_id: str) -> PipelineRun | None:
    with _lock:
        return _runs.get(run_id)


def list_recent_runs(limit: int = 50, branch: str | None = None, status: str | None = None) -> list[PipelineRun]:
    with _lock:
        rows = list(_runs.values())
    if branch:
        rows = [r for r in rows if r.branch == branch]
    if status:
        rows = [r for r in rows if r.status.value == status]
    rows.reverse()
    return rows[:limit]


def clear() -> None:
    with _lock:
        _runs.clear()
        _push_index.clear()
