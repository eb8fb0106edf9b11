from .audit import write_audit
from .config import Settings
from .models import ActionResponse, PipelineRun, PushEvent
from .pipeline import PipelineRunner
from .policy import branch_ref, should_trigger
from .store import claim_push


def handle_push(event: PushEvent, settings: Settings) -> tuple[ActionResponse, PipelineRun | None]:
    """Decide whether a push starts a pipeline.

    Returns the response plus the new run when one should be executed; the
    caller schedules execution so the webhook answers immediately.
    """
    if not should_trigger(event.ref, settings):
        write_audit(event.pusher, "push_ignored", {"ref": event.ref, "after": event.after})
        return (
            ActionResponse(ok=True, message=f"Ignored push to {event.ref}: only {branch_ref(settings.trigger_branch)} triggers CI"),
            None,
        )

    run = PipelineRunner(settings).new_run(branch=settings.trigger_branch, commit=event.after)
    existing = claim_push(event.delivery_id or event.after, run)
    if existing:
        return ActionResponse(ok=True, message="Push already triggered a pipeline", run_id=existing.run_id), None

    write_audit(event.pusher, "pipeline_triggered", {"ref": event.ref, "after": event.after, "run_id": run.run_id})
    return ActionResponse(ok=True, message="Pipeline triggered", run_id=run.run_id), run


def execute_run(run: PipelineRun, settings: Settings) -> PipelineRun:
    return PipelineRunner(settings).execute(run)
