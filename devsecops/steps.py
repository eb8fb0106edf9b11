"""Local executors for each pipeline step kind.

Each executor returns the same ``{"ok": bool, "message": str, ...}`` dict shape
the tool wrappers use. Precondition problems raise :class:`StepError`; the
runner turns those (and missing executables) into a failed step.
"""

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .config import Settings
from .models import PipelineStep, StepKind
from .policy import NO_TESTS_COLLECTED
from .tools.probe import wait_until_ready
from .tools.shell import CommandResult, CommandRunner
from .tools.zap import build_scan_command, interpret_exit_code, summarize_report


class StepError(RuntimeError):
    pass


@dataclass
class StepContext:
    settings: Settings
    workspace: Path
    branch: str
    shell: CommandRunner
    sleep: Callable[[float], None]
    probe: Callable[..., dict] = wait_until_ready
    commit: str | None = None
    service: subprocess.Popen | None = None

    @property
    def venv_python(self) -> str:
        bindir = "Scripts" if sys.platform.startswith("win") else "bin"
        return str(self.workspace / ".venv" / bindir / "python")

    def stop_service(self) -> None:
        if self.service is not None:
            self.shell.stop(self.service)
            self.service = None


def _from_command(res: CommandResult, ok_message: str, fail_message: str) -> dict:
    return {
        "ok": res.ok,
        "message": ok_message if res.ok else f"{fail_message} (exit {res.returncode})",
        "returncode": res.returncode,
        "output": res.tail(),
    }


def checkout(step: PipelineStep, ctx: StepContext) -> dict:
    repo_url = ctx.settings.repo_url
    if not repo_url:
        if not ctx.workspace.is_dir():
            raise StepError(f"Workspace {ctx.workspace} does not exist")
        return {"ok": True, "message": f"Using existing workspace {ctx.workspace}"}

    if ctx.workspace.exists() and any(ctx.workspace.iterdir()):
        raise StepError(f"Workspace {ctx.workspace} is not empty, refusing to clone into it")
    ctx.workspace.parent.mkdir(parents=True, exist_ok=True)
    res = ctx.shell.run(
        ["git", "clone", "--depth", "1", "--branch", ctx.branch, repo_url, str(ctx.workspace)],
        cwd=ctx.workspace.parent,
    )
    if not res.ok or not ctx.commit:
        return _from_command(res, f"Checked out {ctx.branch}", "git clone failed")

    # The branch tip may have moved since the push; build the pushed sha.
    res = ctx.shell.run(["git", "fetch", "--depth", "1", "origin", ctx.commit], cwd=ctx.workspace)
    if not res.ok:
        return _from_command(res, "", f"git fetch of {ctx.commit} failed")
    res = ctx.shell.run(["git", "checkout", "--detach", ctx.commit], cwd=ctx.workspace)
    return _from_command(res, f"Checked out {ctx.branch}@{ctx.commit}", f"git checkout of {ctx.commit} failed")


def setup_runtime(step: PipelineStep, ctx: StepContext) -> dict:
    interpreter = f"python{ctx.settings.python_version}"
    res = ctx.shell.run([interpreter, "-m", "venv", ".venv"], cwd=ctx.workspace)
    return _from_command(res, f"Created virtualenv with {interpreter}", "virtualenv setup failed")


def install_dependencies(step: PipelineStep, ctx: StepContext) -> dict:
    res = ctx.shell.run([ctx.venv_python, "-m", "pip", "install", "-e", "."], cwd=ctx.workspace)
    return _from_command(res, "Dependencies installed", "Dependency install failed")


def run_tests(step: PipelineStep, ctx: StepContext) -> dict:
    res = ctx.shell.run([ctx.venv_python, "-m", "pip", "install", "pytest"], cwd=ctx.workspace)
    if not res.ok:
        return _from_command(res, "", "pytest install failed")

    res = ctx.shell.run([ctx.venv_python, "-m", "pytest"], cwd=ctx.workspace)
    if res.returncode == NO_TESTS_COLLECTED:
        return {"ok": True, "message": "No tests to run", "returncode": res.returncode, "output": res.tail()}
    return _from_command(res, "Tests passed", "Tests failed")


def build_image(step: PipelineStep, ctx: StepContext) -> dict:
    tag = ctx.settings.image_tag
    res = ctx.shell.run(["docker", "build", ".", "-t", tag], cwd=ctx.workspace)
    return _from_command(res, f"Built image {tag}", "docker build failed")


def start_service(step: PipelineStep, ctx: StepContext) -> dict:
    port = str(ctx.settings.port)
    proc = ctx.shell.spawn(
        [ctx.venv_python, "-m", "devsecops", "serve", "--port", port],
        cwd=ctx.workspace,
        env={"PORT": port},
    )
    ctx.service = proc
    code = proc.poll()
    if code is not None:
        return {"ok": False, "message": f"Service exited immediately (exit {code})", "returncode": code}
    return {"ok": True, "message": f"Service started in background on port {port}"}


def wait_for_service(step: PipelineStep, ctx: StepContext) -> dict:
    delay = ctx.settings.warmup_seconds
    ctx.sleep(delay)
    if not ctx.settings.readiness_probe:
        return {"ok": True, "message": f"Waited {delay:g}s"}
    return ctx.probe(ctx.settings.target_url, ctx.settings.readiness_timeout)


def security_scan(step: PipelineStep, ctx: StepContext) -> dict:
    settings = ctx.settings
    res = ctx.shell.run(build_scan_command(settings, ctx.workspace), cwd=ctx.workspace)
    verdict = interpret_exit_code(res.returncode, settings.scan_fail_on_alerts)
    summary = summarize_report(ctx.workspace / settings.scan_report_name)
    counts = ", ".join(f"{level}={n}" for level, n in summary.items())
    return {
        "ok": verdict["ok"],
        "message": f"{verdict['message']} for {settings.target_url} [{counts}]",
        "returncode": res.returncode,
        "output": res.tail(),
        "alerts": summary,
    }


EXECUTORS: dict[StepKind, Callable[[PipelineStep, StepContext], dict]] = {
    StepKind.CHECKOUT: checkout,
    StepKind.RUNTIME: setup_runtime,
    StepKind.INSTALL: install_dependencies,
    StepKind.TEST: run_tests,
    StepKind.BUILD: build_image,
    StepKind.START: start_service,
    StepKind.WAIT: wait_for_service,
    StepKind.SCAN: security_scan,
}


def execute_step(step: PipelineStep, ctx: StepContext) -> dict:
    return EXECUTORS[step.kind](step, ctx)
