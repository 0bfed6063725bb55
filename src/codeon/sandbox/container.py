"""Docker-backed sandbox for running learner programs locally."""

import asyncio
import logging
import tempfile
import time
from pathlib import Path
from typing import Optional

import docker
from docker.errors import DockerException, ImageNotFound

from ..errors import SandboxError
from .client import ExecutionResult

logger = logging.getLogger(__name__)

# Compiler diagnostics are sent to stderr so they reach the diagnostic parser.
RUN_SCRIPTS = {
    "csharp": (
        "mcs -nologo -out:/tmp/program.exe /code/Program.cs 1>&2 "
        "&& mono /tmp/program.exe < /code/stdin.txt"
    ),
}

SOURCE_NAMES = {"csharp": "Program.cs"}


class DockerSandbox:
    """Runs each program in a throwaway container."""

    def __init__(
        self,
        image: str = "mono:latest",
        timeout: float = 30.0,
        memory_limit: str = "256m",
    ):
        """Initialize the sandbox.

        Args:
            image: Image that provides the compiler and runtime
            timeout: Seconds to wait for the container to exit
            memory_limit: Docker memory cap for each run
        """
        self.image = image
        self.timeout = timeout
        self.memory_limit = memory_limit
        self._client: Optional[docker.DockerClient] = None

    @property
    def client(self) -> docker.DockerClient:
        """Get or create Docker client."""
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def is_image_available(self) -> bool:
        """Check if the runtime image exists locally."""
        try:
            self.client.images.get(self.image)
            return True
        except ImageNotFound:
            return False

    async def execute(self, language: str, source: str, stdin: str = "") -> ExecutionResult:
        """Compile and run ``source`` in a fresh container.

        Raises:
            SandboxError: If Docker is unavailable or the run times out
        """
        if language not in RUN_SCRIPTS:
            raise SandboxError(f"Language not supported by the local sandbox: {language}")

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._run, language, source, stdin)
        except DockerException as e:
            raise SandboxError(f"Docker sandbox unavailable: {e}") from e

    async def close(self) -> None:
        """Release the Docker client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _run(self, language: str, source: str, stdin: str) -> ExecutionResult:
        if not self.is_image_available():
            logger.info("Pulling sandbox image %s", self.image)
            self.client.images.pull(self.image)

        with tempfile.TemporaryDirectory(prefix="codeon-") as tmp:
            workdir = Path(tmp)
            (workdir / SOURCE_NAMES[language]).write_text(source, encoding="utf-8")
            (workdir / "stdin.txt").write_text(stdin, encoding="utf-8")

            started = time.monotonic()
            container = self.client.containers.run(
                self.image,
                command=["sh", "-c", RUN_SCRIPTS[language]],
                detach=True,
                network_disabled=True,
                mem_limit=self.memory_limit,
                volumes={str(workdir): {"bind": "/code", "mode": "ro"}},
            )
            try:
                try:
                    status = container.wait(timeout=self.timeout)
                except Exception as e:
                    container.kill()
                    raise SandboxError(f"Program timed out after {self.timeout:.0f}s") from e

                stdout = container.logs(stdout=True, stderr=False).decode("utf-8", "replace")
                stderr = container.logs(stdout=False, stderr=True).decode("utf-8", "replace")
            finally:
                container.remove(force=True)

        elapsed = int((time.monotonic() - started) * 1000)
        logger.debug("docker run finished in %dms (exit %s)", elapsed, status.get("StatusCode"))
        return ExecutionResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=status.get("StatusCode"),
            duration_ms=elapsed,
        )
