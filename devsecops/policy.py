from .config import Settings
from .models import PipelineStep, StepKind

# pytest: "no tests were collected"
NO_TESTS_COLLECTED = 5


def branch_ref(branch: str) -> str:
    return f"refs/heads/{branch}"


def should_trigger(ref: str, settings: Settings) -> bool:
    return ref in {settings.trigger_branch, branch_ref(settings.trigger_branch)}


def allows_failure(kind: StepKind, settings: Settings) -> bool:
    if kind == StepKind.TEST:
        return not settings.strict_tests
    return False


def halts_pipeline(step: PipelineStep, ok: bool) -> bool:
    return not ok and not step.allow_failure
