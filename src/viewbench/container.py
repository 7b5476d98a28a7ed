"""Local PostgreSQL container control.

Issues ``docker``/``podman`` commands to start and stop the benchmark
database. Lifecycle beyond start, stop and remove is left to the runtime.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from viewbench.config.schema import ContainerConfig

logger = logging.getLogger(__name__)

POSTGRES_CONTAINER_PORT = 5432


class ContainerError(Exception):
    """Raised when a container runtime command fails."""

    pass


@dataclass
class ContainerStatus:
    """Observed state of the benchmark container."""

    exists: bool
    running: bool
    message: str = ""


class ContainerManager:
    """Starts and stops the PostgreSQL container described by ContainerConfig."""

    def __init__(self, config: ContainerConfig):
        self.config = config
        self.runtime = config.runtime.value

    def _run(self, args: list[str], timeout: int = 120) -> subprocess.CompletedProcess:
        """Run a runtime command; raise ContainerError on failure."""
        if shutil.which(self.runtime) is None:
            raise ContainerError(f"Container runtime not found on PATH: {self.runtime}")

        cmd = [self.runtime, *args]
        logger.debug("Running: %s", " ".join(cmd[:3]))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired:
            raise ContainerError(f"'{self.runtime} {args[0]}' timed out ({timeout}s)")  # noqa: B904

        if result.returncode != 0:
            error = result.stderr.strip()[:200] if result.stderr else "Unknown error"
            raise ContainerError(f"'{self.runtime} {args[0]}' failed: {error}")
        return result

    def run_args(self) -> list[str]:
        """Arguments for creating the container from scratch."""
        return [
            "run",
            "-d",
            "--name",
            self.config.name,
            "-e",
            f"POSTGRES_PASSWORD={self.config.password}",
            "-p",
            f"{self.config.host_port}:{POSTGRES_CONTAINER_PORT}",
            self.config.image,
        ]

    def status(self) -> ContainerStatus:
        """Inspect the container without failing when it does not exist."""
        if shutil.which(self.runtime) is None:
            raise ContainerError(f"Container runtime not found on PATH: {self.runtime}")

        result = subprocess.run(
            [self.runtime, "inspect", "-f", "{{.State.Running}}", self.config.name],
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode != 0:
            return ContainerStatus(exists=False, running=False, message="not found")

        running = result.stdout.strip().lower() == "true"
        return ContainerStatus(
            exists=True,
            running=running,
            message="running" if running else "stopped",
        )

    def start(self) -> ContainerStatus:
        """Start the container, creating it on first use.

        Returns:
            ContainerStatus after the command
        """
        current = self.status()
        if current.running:
            logger.info("Container %s already running", self.config.name)
            return current

        if current.exists:
            logger.info("Starting existing container %s", self.config.name)
            self._run(["start", self.config.name])
        else:
            logger.info("Creating container %s from %s", self.config.name, self.config.image)
            # First run may pull the image
            self._run(self.run_args(), timeout=600)

        return ContainerStatus(exists=True, running=True, message="running")

    def stop(self) -> ContainerStatus:
        """Stop the container if it is running."""
        current = self.status()
        if not current.exists:
            return current
        if current.running:
            logger.info("Stopping container %s", self.config.name)
            self._run(["stop", self.config.name])
        return ContainerStatus(exists=True, running=False, message="stopped")

    def remove(self) -> None:
        """Force-remove the container (running or not)."""
        if self.status().exists:
            logger.info("Removing container %s", self.config.name)
            self._run(["rm", "-f", self.config.name])
