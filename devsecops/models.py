from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class StepKind(str, Enum):
    CHECKOUT = "checkout"
    RUNTIME = "runtime"
    INSTALL = "install"
    TEST = "test"
    BUILD = "build"
    START = "start"
    WAIT = "wait"
    SCAN = "scan"


class StepStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    ALLOWED_FAILURE = "allowed_failure"
    SKIPPED = "skipped"


class PipelineStep(BaseModel):
    name: str
    kind: StepKind
    uses: str | None = None
    inputs: dict[str, str] = Field(default_factory=dict)
    run: str | None = None
    allow_failure: bool = False


class StepResult(BaseModel):
    name: str
    kind: StepKind
    status: StepStatus = StepStatus.PENDING
    returncode: int | None = None
    message: str = ""
    output: str = ""
    duration_seconds: float = 0.0


class PipelineRun(BaseModel):
    run_id: str
    branch: str
    commit: str | None = None
    status: StepStatus = StepStatus.PENDING
    steps: list[StepResult] = Field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None


class PushEvent(BaseModel):
    ref: str
    after: str | None = None
    delivery_id: str | None = None
    pusher: str = "system"


class ActionResponse(BaseModel):
    ok: bool
    message: str
    run_id: str | None = None
