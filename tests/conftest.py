from pathlib import Path

import pytest

from devsecops import store
from devsecops.config import Settings
from devsecops.tools.shell import CommandResult


class FakeProc:
    def __init__(self, exit_code=None):
        self.exit_code = exit_code
        self.stopped = False

    def poll(self):
        return self.exit_code


class FakeShell:
    """Records commands; ``codes`` maps a word in the command to its exit code."""

    def __init__(self, codes=None, spawn_exit=None, missing=None):
        self.codes = codes or {}
        self.spawn_exit = spawn_exit
        self.missing = missing
        self.commands = []
        self.spawned = []
        self.stopped = []

    def run(self, args, cwd, env=None):
        self.commands.append(args)
        if self.missing and args[0] == self.missing:
            raise FileNotFoundError(f"[Errno 2] No such file or directory: '{self.missing}'")
        if args[:2] == ["git", "clone"]:
            target = Path(args[-1])
            target.mkdir(parents=True, exist_ok=True)
            (target / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
        line = " ".join(args)
        for word, code in self.codes.items():
            if word in line:
                return CommandResult(code, "", f"{word} exited {code}")
        return CommandResult(0, "ok", "")

    def spawn(self, args, cwd, env=None):
        self.spawned.append((args, env))
        return FakeProc(self.spawn_exit)

    def stop(self, proc, timeout=10.0):
        proc.stopped = True
        self.stopped.append(proc)


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides):
        values = {
            "port": 3000,
            "trigger_branch": "main",
            "workspace_dir": str(tmp_path),
            "python_version": "3.12",
            "image_tag": "devsecops-project",
            "warmup_seconds": 15,
            "readiness_probe": False,
            "strict_tests": False,
            "scan_target": "",
            "scan_fail_on_alerts": False,
            "repo_url": "",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def fake_shell():
    return FakeShell()


@pytest.fixture(autouse=True)
def _clear_store():
    store.clear()
    yield
    store.clear()
