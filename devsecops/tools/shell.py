import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def tail(self, limit: int = 2000) -> str:
        text = (self.stdout + self.stderr).strip()
        return text[-limit:]


class CommandRunner:
    """Runs external tools for the local pipeline.

    Tests swap this for a fake that records commands instead of executing them.
    """

    def _env(self, extra: dict[str, str] | None) -> dict[str, str]:
        env = dict(os.environ)
        if extra:
            env.update(extra)
        return env

    def run(self, args: list[str], cwd: Path, env: dict[str, str] | None = None) -> CommandResult:
        logger.info("$ %s", " ".join(args))
        proc = subprocess.run(args, cwd=cwd, env=self._env(env), capture_output=True, text=True)
        return CommandResult(proc.returncode, proc.stdout, proc.stderr)

    def spawn(self, args: list[str], cwd: Path, env: dict[str, str] | None = None) -> subprocess.Popen:
        logger.info("$ %s &", " ".join(args))
        return subprocess.Popen(
            args,
            cwd=cwd,
            env=self._env(env),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def stop(self, proc, timeout: float = 10.0) -> None:
        if proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
