"""Line-framed JSON channel over the child's stdin/stdout.

Each request is written as one line and flushed; each response is read by
scanning up to the next newline, so a response is never split across reads
or cut at a buffer boundary.
"""

import logging
from typing import IO

from pyinterp.lib.commands import Command, Response, parse_response
from pyinterp.lib.errors import ChannelClosedError, ChannelError

logger = logging.getLogger(__name__)


class Channel:
    """Half-duplex request/response channel.

    Args:
        writer: The child's stdin.
        reader: The child's stdout.
    """

    def __init__(self, writer: IO[bytes], reader: IO[bytes]) -> None:
        self.writer = writer
        self.reader = reader

    def send(self, command: Command) -> None:
        data = command.to_line().encode("utf-8")
        try:
            self.writer.write(data)
            self.writer.flush()
        except (OSError, ValueError) as e:
            raise ChannelError(f"write to stdin failed: {e}") from e

    def receive(self) -> Response:
        """Read exactly one response line.

        Raises:
            ChannelClosedError: If the child closed its stdout.
            ChannelError: If the read fails or the line is malformed.
        """
        try:
            line = self.reader.readline()
        except (OSError, ValueError) as e:
            raise ChannelError(f"read from stdout failed: {e}") from e
        if not line:
            raise ChannelClosedError("child closed its output")
        return parse_response(line)

    def request(self, command: Command) -> Response:
        self.send(command)
        return self.receive()
