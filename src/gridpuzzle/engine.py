"""Adapter for the external solving engine.

The engine is any callable taking canonical puzzle text and returning the raw
JSON response (text or an already decoded mapping). `SubprocessEngine` runs a
command-line solver, by default `gridsolve --json <file>`. Plain-text output
from a successful run is the solver explaining why it gave up, and is handed
back as an `{"error": ...}` response.
"""

import json
import logging
import os
import shlex
import subprocess
import tempfile
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Union

from .errors import EngineError

logger = logging.getLogger(__name__)

EngineResponse = Union[str, Mapping[str, Any]]
Engine = Callable[[str], EngineResponse]

DEFAULT_COMMAND = "gridsolve --json"
DEFAULT_TIMEOUT = 30.0


@dataclass
class EngineConfig:
    command: List[str] = field(default_factory=lambda: shlex.split(DEFAULT_COMMAND))
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(
        cls, command: Optional[str] = None, timeout: Optional[float] = None
    ) -> "EngineConfig":
        """Read GRIDSOLVE_COMMAND / GRIDSOLVE_TIMEOUT; explicit arguments win."""
        raw_command = command or os.environ.get("GRIDSOLVE_COMMAND", DEFAULT_COMMAND)
        if timeout is None:
            raw_timeout = os.environ.get("GRIDSOLVE_TIMEOUT", "")
            try:
                timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
            except ValueError:
                raise EngineError(f"GRIDSOLVE_TIMEOUT is not a number: {raw_timeout!r}") from None
        parts = shlex.split(raw_command)
        if not parts:
            raise EngineError("Engine command is empty")
        return cls(command=parts, timeout=timeout)


class SubprocessEngine:
    """Run the solver binary on a temporary puzzle file and return its stdout."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig.from_env()

    def __call__(self, text: str) -> EngineResponse:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "puzzle.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
            cmd = [*self.config.command, path]
            logger.debug("Running engine: %s", " ".join(cmd))
            try:
                proc = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self.config.timeout,
                    check=False,
                )
            except FileNotFoundError as e:
                raise EngineError(f"Engine not found: {self.config.command[0]}") from e
            except subprocess.TimeoutExpired as e:
                raise EngineError(f"Engine timed out after {self.config.timeout}s") from e

        if proc.returncode != 0:
            stderr = proc.stderr.strip()
            raise EngineError(f"Engine exited with status {proc.returncode}: {stderr}")
        return _plain_text_as_error(proc.stdout)


def _plain_text_as_error(out: str) -> EngineResponse:
    """The CLI prints contradictions and parse failures as prose with status 0."""
    try:
        json.loads(out)
    except RecursionError:
        return out
    except ValueError:
        message = out.strip()
        if message:
            logger.info("Engine reported: %s", message)
            return {"error": message}
    return out


__all__ = ["Engine", "EngineConfig", "EngineResponse", "SubprocessEngine"]
