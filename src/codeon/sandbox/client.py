"""Client for the remote code-execution sandbox."""

import logging
import time
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError

from ..errors import SandboxError
from ..settings import Settings

logger = logging.getLogger(__name__)


class ExecutionResult(BaseModel):
    """Captured output of one sandbox run."""

    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    signal: Optional[str] = None
    duration_ms: int = 0

    @property
    def failed(self) -> bool:
        return bool(self.stderr.strip())


class Sandbox(Protocol):
    """Anything that can compile and run a program with a stdin block."""

    async def execute(self, language: str, source: str, stdin: str = "") -> ExecutionResult:
        ...

    async def close(self) -> None:
        ...


class _Stage(BaseModel):
    stdout: str = ""
    stderr: str = ""
    code: Optional[int] = None
    signal: Optional[str] = None


class _PistonResponse(BaseModel):
    run: _Stage = Field(default_factory=_Stage)
    compile: Optional[_Stage] = None


class PistonSandbox:
    """Sandbox backed by a Piston execution API."""

    def __init__(
        self,
        base_url: str = "https://emkc.org/api/v2/piston",
        version: str = "*",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the sandbox client.

        Args:
            base_url: Piston API root, without the /execute suffix
            version: Runtime version, '*' for the latest
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.version = version
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def execute(self, language: str, source: str, stdin: str = "") -> ExecutionResult:
        """Compile and run ``source`` with ``stdin``.

        Raises:
            SandboxError: On transport failure, HTTP error or malformed body
        """
        payload = {
            "language": language,
            "version": self.version,
            "files": [{"content": source}],
            "stdin": stdin,
        }
        started = time.monotonic()
        try:
            response = await self._client.post(f"{self.base_url}/execute", json=payload)
        except httpx.HTTPError as e:
            raise SandboxError(f"Failed to connect to compiler service: {e}") from e

        if response.status_code != 200:
            raise SandboxError(f"Execution failed: {response.status_code} {response.reason_phrase}")

        try:
            data = response.json()
            if not isinstance(data, dict) or not ({"run", "compile"} & data.keys()):
                raise ValueError(f"unexpected body {str(data)[:200]!r}")
            body = _PistonResponse.model_validate(data)
        except (ValueError, ValidationError) as e:
            raise SandboxError(f"Malformed sandbox response: {e}") from e

        elapsed = int((time.monotonic() - started) * 1000)
        stderr = body.run.stderr
        compile_stage = body.compile
        if compile_stage is not None and compile_stage.code not in (None, 0):
            stderr = compile_stage.stderr or compile_stage.stdout
            if body.run.stderr:
                stderr = f"{stderr}\n{body.run.stderr}"

        logger.debug(
            "sandbox %s run finished in %dms (exit %s)", language, elapsed, body.run.code
        )
        return ExecutionResult(
            stdout=body.run.stdout,
            stderr=stderr,
            exit_code=body.run.code,
            signal=body.run.signal,
            duration_ms=elapsed,
        )

    async def close(self) -> None:
        await self._client.aclose()


def create_sandbox(settings: Settings) -> Sandbox:
    """Build the sandbox backend selected in settings."""
    if settings.sandbox == "docker":
        from .container import DockerSandbox

        return DockerSandbox(image=settings.docker_image, timeout=settings.sandbox_timeout)
    return PistonSandbox(
        base_url=settings.piston_url,
        version=settings.language_version,
        timeout=settings.sandbox_timeout,
    )
