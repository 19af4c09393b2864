"""Host-side handle to a long-lived child Python interpreter.

``Interp`` combines a ``Supervisor`` (process lifecycle) with a ``Channel``
(one JSON line each way) and exposes script execution and variable access
as blocking calls. Each call is exactly one write followed by one read.

Lifecycle::

    UNCONFIGURED --configure--> CONFIGURED --start--> STARTED --close/exit--> CLOSED

``run``, ``get``, ``set`` and ``request`` raise ``NotRunningError`` outside
``STARTED`` without touching the streams. Calls from several threads are
serialized on an internal lock; there are no timeouts, so a child that
never answers blocks the caller until it exits.

Examples:
    Execute code and move values across the boundary::

        >>> with new_interp() as py:
        ...     py.set("xs", [1, 2, 3])
        ...     py.run("total = sum(xs)\\nprint(total)")
        ...     py.get("total")
        '6\\n'
        6

    Point at a specific interpreter::

        >>> py = new_interp(with_path("/usr/bin/python3.12"), with_env({"LANG": "C.UTF-8"}))
"""

import logging
import threading
from enum import StrEnum
from typing import IO, Any, Self

from pyinterp.config import settings
from pyinterp.lib.channel import Channel
from pyinterp.lib.commands import (
    Command,
    ErrorResponse,
    GetResponse,
    Response,
    RunResponse,
    SetResponse,
    build_get,
    build_run,
    build_set,
    resolve_refs,
)
from pyinterp.lib.errors import (
    ChannelClosedError,
    ChannelError,
    InterpError,
    NotRunningError,
    StartError,
)
from pyinterp.lib.process import Option, Supervisor, default_options

logger = logging.getLogger(__name__)


class InterpState(StrEnum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    STARTED = "started"
    CLOSED = "closed"


class Interp:
    """Handle owning one child interpreter and its streams.

    Args:
        executable: Interpreter to launch. Defaults to ``settings.executable``;
            a ``with_path`` option overrides it.
        read_size: Maximum characters of output returned by ``run``.
            Defaults to ``settings.read_size``.
    """

    def __init__(
        self,
        *,
        executable: str | None = None,
        read_size: int | None = None,
    ) -> None:
        self.executable = executable or settings.executable
        self.read_size = read_size if read_size is not None else settings.read_size
        if self.read_size <= 0:
            raise ValueError(f"read_size must be positive, got {self.read_size}")
        self.supervisor = Supervisor()
        self.channel: Channel | None = None
        self.state = InterpState.UNCONFIGURED
        self.lock = threading.Lock()

    @property
    def pid(self) -> int | None:
        return self.supervisor.pid

    @property
    def stderr(self) -> IO[bytes] | None:
        """The child's stderr. Nothing here reads it."""
        return self.supervisor.stderr

    # --- Lifecycle ---

    def configure(self, *options: Option) -> Self:
        """Apply the default options followed by ``options``.

        Steps are numbered across the combined list, so a failing caller
        option is reported after the defaults. A failed attempt leaves the
        handle unconfigured and untouched, so it can be configured again.
        """
        if self.state is not InterpState.UNCONFIGURED:
            raise InterpError(f"cannot configure an interpreter that is {self.state}")
        supervisor = Supervisor()
        supervisor.configure(*default_options(self.executable), *options)
        self.supervisor = supervisor
        self.state = InterpState.CONFIGURED
        return self

    def start(self) -> None:
        if self.state is not InterpState.CONFIGURED:
            raise StartError(f"cannot start an interpreter that is {self.state}")
        self.supervisor.start()
        stdin, stdout = self.supervisor.stdin, self.supervisor.stdout
        if stdin is None or stdout is None:
            raise StartError("child was started without pipes")
        self.channel = Channel(stdin, stdout)
        self.state = InterpState.STARTED

    def wait(self) -> int:
        """Block until the child exits; returns its exit status."""
        status = self.supervisor.wait()
        self.state = InterpState.CLOSED
        return status

    def close(self) -> None:
        """Forcibly terminate the child. This is not a graceful shutdown.

        Raises:
            KillError: If the child was never started, is already closed, or
                has already exited and been reaped by ``wait``.
        """
        try:
            self.supervisor.terminate()
        finally:
            if self.supervisor.process is not None:
                self.state = InterpState.CLOSED
                self.channel = None

    def __enter__(self) -> Self:
        started = False
        try:
            if self.state is InterpState.CONFIGURED:
                self.start()
            started = True
        finally:
            if not started and self.supervisor.process is not None:
                self.close()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        process = self.supervisor.process
        if process is None or self.supervisor.terminated:
            return
        if process.poll() is not None:
            self.supervisor.release()
            self.state = InterpState.CLOSED
            self.channel = None
        else:
            self.close()

    # --- Protocol operations ---

    def ensure_running(self) -> None:
        if self.state is not InterpState.STARTED:
            raise NotRunningError(f"interpreter is {self.state}")

    def request(self, command: Command) -> Response:
        """Send one command and return its response.

        Raises:
            NotRunningError: Outside the STARTED state.
            RemoteError: If the child answered with an error response.
            ChannelError: If the streams fail. When the child has exited
                (always so for ChannelClosedError) the handle is CLOSED after.
        """
        with self.lock:
            self.ensure_running()
            assert self.channel is not None
            logger.debug("Request %s %s", command.kind, command.variable or "")
            try:
                response = self.channel.request(command)
            except ChannelError as e:
                process = self.supervisor.process
                exited = process is not None and process.poll() is not None
                if isinstance(e, ChannelClosedError) or exited:
                    logger.warning("Interpreter pid %s is gone: %s", self.pid, e)
                    self.state = InterpState.CLOSED
                raise
        if isinstance(response, ErrorResponse):
            raise response.to_exception()
        return response

    def run(self, script: str) -> str:
        """Execute ``script`` in the child's name table and return its stdout.

        Output beyond ``read_size`` characters is cut off; only the prefix
        is returned.
        """
        self.ensure_running()
        response = self.request(build_run(script, limit=self.read_size))
        if not isinstance(response, RunResponse):
            raise ChannelError(f"expected run response, got {response.kind}")
        if response.stderr:
            logger.debug("Script stderr: %s", response.stderr)
        if response.truncated:
            logger.debug("Script output truncated to %d characters", self.read_size)
        return response.output

    def get(self, name: str) -> Any:
        self.ensure_running()
        response = self.request(build_get(name))
        if not isinstance(response, GetResponse):
            raise ChannelError(f"expected get response, got {response.kind}")
        return resolve_refs(response.value, response.refs)

    def set(self, name: str, value: object) -> None:
        """Bind ``name`` to ``value`` in the child and wait for the ack.

        Raises:
            EncodingError: If ``value`` is not JSON serializable.
        """
        self.ensure_running()
        response = self.request(build_set(name, value))
        if not isinstance(response, SetResponse):
            raise ChannelError(f"expected set response, got {response.kind}")


def new_interp(
    *options: Option,
    executable: str | None = None,
    read_size: int | None = None,
) -> Interp:
    """Create a configured, not yet started interpreter.

    Args:
        options: Extra configuration steps applied after the defaults.
        executable: Interpreter executable (default ``settings.executable``).
        read_size: Output cap for ``run`` (default ``settings.read_size``).

    Raises:
        ConfigError: If any configuration step fails.
    """
    return Interp(executable=executable, read_size=read_size).configure(*options)
