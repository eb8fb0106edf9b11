from fastapi import APIRouter, BackgroundTasks, Depends

from . import command_handler
from .config import Settings, settings
from .models import ActionResponse, PushEvent
from .store import get_run, list_recent_runs

router = APIRouter()


def get_settings() -> Settings:
    return settings


@router.get("/health")
def health():
    return {"ok": True, "service": "devsecops-project"}


@router.post("/hooks/push", response_model=ActionResponse)
def push_hook(event: PushEvent, background_tasks: BackgroundTasks, cfg: Settings = Depends(get_settings)):
    response, run = command_handler.handle_push(event, cfg)
    if run is not None:
        background_tasks.add_task(command_handler.execute_run, run, cfg)
    return response


@router.get("/runs/{run_id}")
def run_detail(run_id: str):
    run = get_run(run_id)
    if not run:
        return {"ok": False, "message": "Run not found"}
    return {"ok": True, "run": run.model_dump(mode="json")}


@router.get("/runs")
def runs(limit: int = 50, branch: str | None = None, status: str | None = None):
    limit = max(1, min(limit, 500))
    items = [r.model_dump(mode="json") for r in list_recent_runs(limit=limit, branch=branch, status=status)]
    return {"ok": True, "count": len(items), "items": items}
