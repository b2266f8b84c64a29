"""Docker credential helper invocation.

A credential helper is an executable named ``docker-credential-<name>``. For
the ``get`` action it reads a registry host from stdin and writes a JSON
object to stdout:

    $ echo -n gcr.io | docker-credential-gcloud get
    {"ServerURL": "gcr.io", "Username": "_dcgcloud_token", "Secret": "ya29..."}

Diagnostics go to stderr. They are logged, never treated as a failure on
their own.

Pipe handling:
    stdout and stderr are drained by their own tasks while the host is
    written to stdin and the exit status is awaited. A helper that starts
    writing a large response before it has consumed its input can therefore
    never block on a full pipe buffer. All four tasks are joined before the
    invocation returns, and the process is killed and reaped on every exit
    path.

Example:
    >>> invoker = CredentialHelperInvoker()
    >>> auth = invoker.get("gcr.io", "gcloud")
    >>> auth.username
    '_dcgcloud_token'

Thread Safety:
    Invocations share no state; each one owns its subprocess and pipes, so
    concurrent calls from separate threads or tasks need no coordination.
"""

from __future__ import annotations

import asyncio
import json

import structlog
from pydantic import ValidationError

from registry_auth.config.settings import DEFAULT_HELPER_PREFIX
from registry_auth.exceptions import (
    HelperNotFoundError,
    HelperResponseError,
    HelperTimeoutError,
)
from registry_auth.models import AuthConfig, HelperResponse

log = structlog.get_logger(__name__)

HELPER_ACTION_GET = "get"


class CredentialHelperInvoker:
    """Run credential helpers with the ``get`` protocol.

    Args:
        helper_prefix: Prepended to the helper name to form the command.
            May include a directory, e.g. ``/opt/bin/docker-credential-``.
        timeout: Seconds to wait for the helper. None (default) waits
            indefinitely; a hung helper then blocks its caller.
    """

    def __init__(
        self,
        helper_prefix: str = DEFAULT_HELPER_PREFIX,
        timeout: float | None = None,
    ) -> None:
        self.helper_prefix = helper_prefix
        self.timeout = timeout

    def command_for(self, helper: str) -> str:
        """Build the executable name for a helper suffix (e.g. ``gcloud``)."""
        return f"{self.helper_prefix}{helper}"

    def get(self, host: str, helper: str) -> AuthConfig:
        """Synchronous variant of :meth:`get_async`.

        Must not be called from a running event loop.

        Raises:
            RuntimeError: If an event loop is already running in this thread
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.get_async(host, helper))

        log.error(
            "credential_helper_sync_in_event_loop",
            command=self.command_for(helper),
            host=host,
        )
        raise RuntimeError(
            "CredentialHelperInvoker.get() cannot run inside an event loop; await get_async() instead"
        )

    async def get_async(self, host: str, helper: str) -> AuthConfig:
        """Ask a credential helper for the credentials of ``host``.

        Args:
            host: Registry host written to the helper's stdin
            helper: Helper suffix, e.g. ``gcloud`` or ``ecr-login``

        Returns:
            Credentials mapped from the helper response

        Raises:
            HelperNotFoundError: If the helper process cannot be started
            HelperTimeoutError: If the helper exceeds the timeout
            HelperResponseError: If stdout is not a JSON object
        """
        command = self.command_for(helper)
        log.debug("credential_helper_started", command=command, host=host)

        stdout, stderr, returncode = await self._run(command, host)

        if stderr.strip():
            log.error("credential_helper_stderr", command=command, host=host, stderr=stderr.strip())
        if returncode != 0:
            log.warning("credential_helper_exit_status", command=command, host=host, returncode=returncode)

        response = _parse_response(command, stdout)
        log.debug("credential_helper_succeeded", command=command, host=host)
        return AuthConfig.from_helper_response(response)

    async def _run(self, command: str, host: str) -> tuple[str, str, int]:
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                HELPER_ACTION_GET,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            log.error("credential_helper_spawn_failed", command=command, error=str(e))
            raise HelperNotFoundError(
                f"Cannot run credential helper: {e}",
                reference=command,
                suggestion=f"Install {command} and make sure it is on PATH",
            ) from e

        assert process.stdout is not None and process.stderr is not None

        try:
            stdout_bytes, stderr_bytes, _, returncode = await asyncio.wait_for(
                asyncio.gather(
                    process.stdout.read(),
                    process.stderr.read(),
                    _write_input(process, host),
                    process.wait(),
                ),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            log.error("credential_helper_timeout", command=command, host=host, timeout=self.timeout)
            raise HelperTimeoutError(
                f"Credential helper did not finish within {self.timeout}s",
                reference=command,
            ) from e
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return stdout, stderr, returncode


async def _write_input(process: asyncio.subprocess.Process, host: str) -> None:
    assert process.stdin is not None
    try:
        process.stdin.write(host.encode("utf-8"))
        await process.stdin.drain()
        process.stdin.close()
        await process.stdin.wait_closed()
    except (BrokenPipeError, ConnectionResetError):
        # Helper exited without reading its input; its output still decides
        log.debug("credential_helper_stdin_closed", pid=process.pid)


def _parse_response(command: str, stdout: str) -> HelperResponse:
    try:
        data = json.loads(stdout)
    except ValueError as e:
        raise HelperResponseError(
            f"Credential helper returned invalid JSON: {e}",
            reference=command,
        ) from e

    if not isinstance(data, dict):
        raise HelperResponseError(
            "Credential helper response must be a JSON object",
            reference=command,
        )

    try:
        return HelperResponse.model_validate(data)
    except ValidationError as e:
        raise HelperResponseError(
            f"Unexpected credential helper response: {e}",
            reference=command,
        ) from e
