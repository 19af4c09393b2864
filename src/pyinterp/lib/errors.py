"""Error taxonomy for the interpreter bridge.

Every error raised by pyinterp derives from ``InterpError`` so callers can
catch the whole family at once. Nothing here is retried automatically;
errors go straight back to the caller that triggered them.

Examples:
    Distinguish a crashed child from a failing script::

        >>> try:
        ...     interp.get("missing")
        ... except RemoteError as e:
        ...     e.error_type
        'KeyError'
"""


class InterpError(RuntimeError):
    """Base class for all bridge errors."""


class ConfigError(InterpError):
    """Raised when a configuration step fails before launch."""

    def __init__(self, index: int, cause: BaseException) -> None:
        super().__init__(f"option {index} failed: {cause}")
        self.index = index


class StartError(InterpError):
    """Raised when the interpreter executable cannot be started."""


class EncodingError(InterpError, ValueError):
    """Raised when a value cannot be serialized to JSON."""


class ChannelError(InterpError):
    """Raised when reading from or writing to the child's streams fails."""


class ChannelClosedError(ChannelError):
    """Raised when the child closed its output, usually because it exited."""


class WaitError(InterpError):
    """Raised when waiting on a process that was never started."""


class KillError(InterpError):
    """Raised when the child process cannot be terminated."""


class NotRunningError(InterpError):
    """Raised when an operation needs a started, open interpreter."""


class RemoteError(InterpError):
    """Raised when the child reports a failure in an error response.

    Args:
        error_type: Exception class name raised inside the child.
        message: The exception message.
        traceback: Formatted child-side traceback, if any.
    """

    def __init__(self, error_type: str, message: str, traceback: str = "") -> None:
        super().__init__(f"{error_type}: {message}")
        self.error_type = error_type
        self.message = message
        self.traceback = traceback
