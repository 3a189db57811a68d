"""Container engine adapters.

This module handles:
- The ContainerEngine interface (build, run_list, push)
- CLIEngine, which drives a podman/docker compatible executable
- Mapping subprocess failures to EngineCommandError
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127


class EngineCommandError(Exception):
    """Raised when a container engine command fails."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "engine_error",
        command: str | None = None,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.code = code
        self.command = command


class ContainerEngine(ABC):
    """Operations the image builder needs from a container engine."""

    @abstractmethod
    def build(self, image: str, descriptor: Path, context_dir: Path) -> None:
        """Build ``descriptor`` in ``context_dir`` and tag it as ``image``.

        Raises:
            EngineCommandError: If the build fails.
        """

    @abstractmethod
    def run_list(self, image: str, path: str) -> bool:
        """List ``path`` inside a throwaway container of ``image``.

        Returns:
            True if the path exists in the image.
        """

    @abstractmethod
    def push(self, image: str) -> None:
        """Push ``image`` to its registry.

        Raises:
            EngineCommandError: If the push fails.
        """


class CLIEngine(ContainerEngine):
    """Container engine driven through its command-line executable.

    Works with any executable exposing the podman/docker ``build``, ``run``
    and ``push`` commands. Output of build and push goes straight to the
    operator's terminal.
    """

    def __init__(
        self,
        executable: str = "podman",
        build_timeout: int | None = None,
        run_timeout: int | None = None,
        push_timeout: int | None = None,
    ) -> None:
        self.executable = executable
        self.build_timeout = build_timeout
        self.run_timeout = run_timeout
        self.push_timeout = push_timeout

    def compose_build_command(
        self, image: str, descriptor: Path, context_dir: Path
    ) -> list[str]:
        return [
            self.executable,
            "build",
            "-t",
            image,
            "-f",
            str(descriptor),
            str(context_dir),
        ]

    def compose_run_list_command(self, image: str, path: str) -> list[str]:
        return [
            self.executable,
            "run",
            "--rm",
            "--entrypoint",
            "/bin/ls",
            image,
            path,
        ]

    def compose_push_command(self, image: str) -> list[str]:
        return [self.executable, "push", image]

    def _run(
        self,
        cmd: list[str],
        timeout: int | None,
        quiet: bool = False,
    ) -> int:
        """Run an engine command and return its exit code.

        Raises:
            EngineCommandError: If the command cannot be started or times out.
        """
        cmd_str = shlex.join(cmd)
        logger.info("Executing: %s", cmd_str)

        output = subprocess.DEVNULL if quiet else None
        try:
            result = subprocess.run(
                cmd,
                stdout=output,
                stderr=output,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise EngineCommandError(
                f"{cmd[1]} timed out after {timeout} seconds",
                exit_code=-1,
                code="engine_timeout",
                command=cmd_str,
            ) from e
        except OSError as e:
            raise EngineCommandError(
                f"Failed to execute {self.executable}: {e}",
                exit_code=EXIT_NOT_FOUND,
                code="engine_not_found",
                command=cmd_str,
            ) from e

        logger.debug("Exit code %d: %s", result.returncode, cmd_str)
        return result.returncode

    def build(self, image: str, descriptor: Path, context_dir: Path) -> None:
        cmd = self.compose_build_command(image, descriptor, context_dir)
        exit_code = self._run(cmd, self.build_timeout)
        if exit_code != 0:
            raise EngineCommandError(
                f"Build failed with exit code {exit_code}",
                exit_code=exit_code,
                command=shlex.join(cmd),
            )

    def run_list(self, image: str, path: str) -> bool:
        cmd = self.compose_run_list_command(image, path)
        return self._run(cmd, self.run_timeout, quiet=True) == 0

    def push(self, image: str) -> None:
        cmd = self.compose_push_command(image)
        exit_code = self._run(cmd, self.push_timeout)
        if exit_code != 0:
            raise EngineCommandError(
                f"Push failed with exit code {exit_code}",
                exit_code=exit_code,
                command=shlex.join(cmd),
            )


__all__ = [
    "CLIEngine",
    "ContainerEngine",
    "EXIT_NOT_FOUND",
    "EngineCommandError",
]
