import argparse
import logging
import sys
from pathlib import Path

from .config import Settings, settings
from .models import StepStatus
from .monitoring import dump_yaml, render_compose, render_prometheus_config
from .pipeline import PipelineRunner
from .workflow import dump_workflow

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

STATUS_MARKS = {
    StepStatus.SUCCESS: "[OK]",
    StepStatus.FAILED: "[FAIL]",
    StepStatus.ALLOWED_FAILURE: "[WARN]",
    StepStatus.SKIPPED: "[SKIP]",
    StepStatus.PENDING: "[..]",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _serve(args, cfg: Settings) -> int:
    import uvicorn

    uvicorn.run("devsecops.main:app", host=args.host or cfg.app_host, port=args.port or cfg.port)
    return 0


def _run(args, cfg: Settings) -> int:
    updates = {}
    if args.workspace:
        updates["workspace_dir"] = args.workspace
    if args.strict_tests:
        updates["strict_tests"] = True
    if updates:
        cfg = cfg.model_copy(update=updates)

    run = PipelineRunner(cfg).run(branch=args.branch, commit=args.commit)
    for step in run.steps:
        print(f"{STATUS_MARKS[step.status]} {step.name}: {step.message}")
    print(f"Pipeline {run.run_id}: {run.status.value}")
    return 0 if run.status == StepStatus.SUCCESS else 1


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    print(f"[OK] wrote {path}")


def _render_workflow(args, cfg: Settings) -> int:
    text = dump_workflow(cfg)
    if args.output == "-":
        sys.stdout.write(text)
    else:
        _write(Path(args.output), text)
    return 0


def _render_monitoring(args, cfg: Settings) -> int:
    root = Path(args.dir)
    _write(root / "monitoring" / "prometheus.yml", dump_yaml(render_prometheus_config(cfg)))
    _write(root / "docker-compose.yml", dump_yaml(render_compose(cfg)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="devsecops", description="DevSecOps project: app, CI pipeline, monitoring")
    parser.add_argument("--log-level", help="Logging level (default from LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web application")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.set_defaults(func=_serve)

    run = sub.add_parser("run", help="Run the CI pipeline locally")
    run.add_argument("--branch")
    run.add_argument("--commit")
    run.add_argument("--workspace")
    run.add_argument("--strict-tests", action="store_true", help="Let failing tests halt the pipeline")
    run.set_defaults(func=_run)

    wf = sub.add_parser("render-workflow", help="Write the GitHub Actions workflow")
    wf.add_argument("--output", default=".github/workflows/ci.yml", help="Path, or - for stdout")
    wf.set_defaults(func=_render_workflow)

    mon = sub.add_parser("render-monitoring", help="Write Prometheus and docker-compose config")
    mon.add_argument("--dir", default=".")
    mon.set_defaults(func=_render_monitoring)
    return parser


def main(argv: list[str] | None = None, cfg: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = cfg or settings
    configure_logging(args.log_level or cfg.log_level)
    return args.func(args, cfg)
