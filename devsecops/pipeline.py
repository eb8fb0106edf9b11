import logging
import shutil
import threading
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .audit import write_audit
from .config import Settings
from .models import PipelineRun, PipelineStep, StepKind, StepResult, StepStatus
from .policy import allows_failure, halts_pipeline
from .steps import StepContext, StepError, execute_step
from .tools.probe import wait_until_ready
from .tools.shell import CommandRunner

logger = logging.getLogger(__name__)

_run_lock = threading.Lock()

TEST_FAILURE_WARNING = "::warning::Tests failed or none were collected"


def build_pipeline(settings: Settings) -> list[PipelineStep]:
    """The CI job, in the only order it ever runs."""
    test_run = "pip install pytest\npytest"
    if not settings.strict_tests:
        test_run += f' || echo "{TEST_FAILURE_WARNING}"'

    return [
        PipelineStep(name="Checkout code", kind=StepKind.CHECKOUT, uses="actions/checkout@v4"),
        PipelineStep(
            name="Set up Python",
            kind=StepKind.RUNTIME,
            uses="actions/setup-python@v5",
            inputs={"python-version": settings.python_version},
        ),
        PipelineStep(name="Install dependencies", kind=StepKind.INSTALL, run="pip install -e ."),
        PipelineStep(
            name="Install and run tests",
            kind=StepKind.TEST,
            run=test_run,
            allow_failure=allows_failure(StepKind.TEST, settings),
        ),
        PipelineStep(name="Build Docker image", kind=StepKind.BUILD, run=f"docker build . -t {settings.image_tag}"),
        PipelineStep(
            name="Start the target service",
            kind=StepKind.START,
            run=f"PORT={settings.port} python -m devsecops serve &",
        ),
        PipelineStep(name="Wait for the service to start", kind=StepKind.WAIT, run=f"sleep {settings.warmup_seconds:g}"),
        PipelineStep(
            name="Run ZAP Baseline Scan",
            kind=StepKind.SCAN,
            uses=settings.zap_action,
            inputs={"target": settings.target_url},
        ),
    ]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PipelineRunner:
    def __init__(self, settings: Settings, shell: CommandRunner | None = None, sleep=time.sleep, probe=wait_until_ready):
        self.settings = settings
        self.shell = shell or CommandRunner()
        self.sleep = sleep
        self.probe = probe
        self.steps = build_pipeline(settings)

    def new_run(self, branch: str | None = None, commit: str | None = None) -> PipelineRun:
        return PipelineRun(
            run_id=str(uuid.uuid4()),
            branch=branch or self.settings.trigger_branch,
            commit=commit,
            steps=[StepResult(name=s.name, kind=s.kind) for s in self.steps],
        )

    def run(self, branch: str | None = None, commit: str | None = None) -> PipelineRun:
        return self.execute(self.new_run(branch, commit))

    def workspace_for(self, run: PipelineRun) -> Path:
        base = Path(self.settings.workspace_dir).absolute()
        if self.settings.repo_url:
            return base / run.run_id
        return base

    def execute(self, run: PipelineRun) -> PipelineRun:
        # One run at a time: runs share the venv, image tag and service port.
        with _run_lock:
            return self._execute(run)

    def _execute(self, run: PipelineRun) -> PipelineRun:
        ctx = StepContext(
            settings=self.settings,
            workspace=self.workspace_for(run),
            branch=run.branch,
            shell=self.shell,
            sleep=self.sleep,
            probe=self.probe,
            commit=run.commit,
        )
        fresh_clone = bool(self.settings.repo_url) and not ctx.workspace.exists()
        run.started_at = _now()
        halted = False
        logger.info("Pipeline %s started for %s@%s", run.run_id, run.branch, run.commit or "HEAD")
        try:
            for step, result in zip(self.steps, run.steps):
                if halted:
                    result.status = StepStatus.SKIPPED
                    continue
                halted = self._run_step(step, result, ctx)
        finally:
            ctx.stop_service()
            if fresh_clone and ctx.workspace.exists():
                shutil.rmtree(ctx.workspace)

        run.status = StepStatus.FAILED if halted else StepStatus.SUCCESS
        run.finished_at = _now()
        logger.info("Pipeline %s finished: %s", run.run_id, run.status.value)
        write_audit(
            "pipeline",
            "run_finished",
            {"run_id": run.run_id, "branch": run.branch, "status": run.status.value},
        )
        return run

    def _run_step(self, step: PipelineStep, result: StepResult, ctx: StepContext) -> bool:
        logger.info("==> %s", step.name)
        started = time.monotonic()
        try:
            outcome = execute_step(step, ctx)
        except (StepError, OSError, ValueError) as exc:
            outcome = {"ok": False, "message": str(exc) or exc.__class__.__name__}
        result.duration_seconds = round(time.monotonic() - started, 3)

        ok = bool(outcome.get("ok"))
        result.returncode = outcome.get("returncode")
        result.message = outcome.get("message", "")
        result.output = outcome.get("output", "")

        if ok:
            result.status = StepStatus.SUCCESS
        elif step.allow_failure:
            result.status = StepStatus.ALLOWED_FAILURE
            logger.warning("%s failed but the pipeline continues: %s", step.name, result.message)
        else:
            result.status = StepStatus.FAILED
            logger.error("%s failed: %s", step.name, result.message)
        return halts_pipeline(step, ok)
