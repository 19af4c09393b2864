"""Child process supervision.

A ``Supervisor`` holds a pending ``ProcessSpec`` that configuration options
mutate in order, then owns the spawned ``subprocess.Popen`` handle and its
three pipes.

Options are plain callables taking the spec. They run before launch, in the
order given; argument options accumulate, so later ones append after
earlier ones.

Examples:
    Spawn a process with extra arguments::

        >>> sup = Supervisor().configure(
        ...     with_path("python3"),
        ...     with_args("-c", "print('hi')"),
        ...     with_pipes(),
        ... )
        >>> sup.start()
        >>> sup.stdout.read()
        b'hi\\n'
        >>> sup.wait()
        0
"""

import logging
import os
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import IO, Self

from pyinterp.lib.bootstrap import BOOTSTRAP_SCRIPT
from pyinterp.lib.errors import ConfigError, KillError, StartError, WaitError

logger = logging.getLogger(__name__)


class ProcessSpec:
    """Pending description of the child process."""

    def __init__(self, executable: str = "") -> None:
        self.executable = executable
        self.args: list[str] = []
        self.env: dict[str, str] | None = None
        self.cwd: Path | None = None
        self.pipes = False

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]


Option = Callable[[ProcessSpec], None]


def with_args(*args: str) -> Option:
    """Append command-line arguments."""

    def apply(spec: ProcessSpec) -> None:
        for arg in args:
            if not isinstance(arg, str):
                raise TypeError(f"argument must be str, not {type(arg).__name__}")
        spec.args.extend(args)

    return apply


def with_path(path: str | os.PathLike[str]) -> Option:
    """Set the interpreter executable."""

    def apply(spec: ProcessSpec) -> None:
        spec.executable = os.fspath(path)

    return apply


def with_env(env: Mapping[str, str]) -> Option:
    """Replace the child's environment wholesale."""

    def apply(spec: ProcessSpec) -> None:
        for key, value in env.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise TypeError(f"environment entries must be str: {key!r}")
        spec.env = dict(env)

    return apply


def with_cwd(path: str | os.PathLike[str]) -> Option:
    """Run the child in ``path``, which must be an existing directory."""

    def apply(spec: ProcessSpec) -> None:
        directory = Path(path)
        if not directory.is_dir():
            raise NotADirectoryError(f"not a directory: {directory}")
        spec.cwd = directory

    return apply


def with_pipes() -> Option:
    """Connect the child's stdin, stdout and stderr to pipes."""

    def apply(spec: ProcessSpec) -> None:
        spec.pipes = True

    return apply


def default_options(executable: str) -> list[Option]:
    """Options applied before any caller-supplied ones.

    Built fresh on every call so that configuring one interpreter never
    leaks into another.
    """
    return [
        with_path(executable),
        with_args("-c", BOOTSTRAP_SCRIPT),
        with_pipes(),
    ]


class Supervisor:
    """Owns one child process from configuration to termination.

    Args:
        executable: Initial executable, usually overridden by ``with_path``.
    """

    def __init__(self, executable: str = "") -> None:
        self.spec = ProcessSpec(executable)
        self.process: subprocess.Popen[bytes] | None = None
        self.terminated = False

    def configure(self, *steps: Option) -> Self:
        """Apply configuration steps in order.

        Raises:
            ConfigError: On the first failing step, numbered from 1. Steps
                after it are not applied.
        """
        for index, step in enumerate(steps, 1):
            try:
                step(self.spec)
            except Exception as e:
                raise ConfigError(index, e) from e
        return self

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None

    @property
    def stdin(self) -> IO[bytes] | None:
        return self.process.stdin if self.process is not None else None

    @property
    def stdout(self) -> IO[bytes] | None:
        return self.process.stdout if self.process is not None else None

    @property
    def stderr(self) -> IO[bytes] | None:
        return self.process.stderr if self.process is not None else None

    def start(self) -> None:
        """Spawn the configured process.

        Raises:
            StartError: If already started, or the executable cannot be run.
        """
        if self.process is not None:
            raise StartError("process already started")
        if not self.spec.executable:
            raise StartError("no executable configured")

        pipe = subprocess.PIPE if self.spec.pipes else None
        try:
            self.process = subprocess.Popen(
                self.spec.argv,
                stdin=pipe,
                stdout=pipe,
                stderr=pipe,
                env=self.spec.env,
                cwd=self.spec.cwd,
            )
        except OSError as e:
            raise StartError(f"cannot start {self.spec.executable!r}: {e}") from e
        logger.info("Started %s (pid %d)", self.spec.executable, self.process.pid)

    def wait(self) -> int:
        """Block until the child exits and return its exit status."""
        if self.process is None:
            raise WaitError("process was never started")
        return self.process.wait()

    def terminate(self) -> None:
        """Kill the child, close its pipes and reap it.

        Raises:
            KillError: If the process was never started, was already
                terminated, has already been reaped by ``wait``, or cannot
                be signalled.
        """
        if self.process is None:
            raise KillError("process was never started")
        if self.terminated:
            raise KillError(f"process {self.process.pid} already terminated")
        if self.process.returncode is not None:
            self.release()
            raise KillError(f"process {self.process.pid} already finished")

        try:
            self.process.kill()
        except OSError as e:
            raise KillError(f"cannot kill process {self.process.pid}: {e}") from e
        self.release()

        status = self.process.wait()
        logger.info("Terminated pid %d (status %d)", self.process.pid, status)

    def release(self) -> None:
        """Close the child's pipes. No terminate is possible afterwards."""
        self.terminated = True
        if self.process is None:
            return
        for stream in (self.process.stdin, self.process.stdout, self.process.stderr):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError as e:
                logger.debug("Error closing pipe of pid %d: %s", self.process.pid, e)
