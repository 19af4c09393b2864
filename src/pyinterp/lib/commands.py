"""Wire vocabulary shared by the host and the bootstrap program.

Every exchange is one JSON object per line. The host sends a ``Command``;
the child answers with exactly one response whose ``kind`` selects the
variant:

    Request:  {"kind": "set", "variable": "x", "payload": "[1, 2]"}
    Response: {"kind": "set", "variable": "x"}

    Request:  {"kind": "get", "variable": "x"}
    Response: {"kind": "get", "variable": "x", "value": [1, 2], "refs": []}

    Request:  {"kind": "run", "payload": "print(x)", "limit": 1024}
    Response: {"kind": "run", "output": "[1, 2]\\n", "stderr": "", "truncated": false}

    Failure:  {"kind": "error", "error_type": "KeyError", "message": "'y'", "traceback": "..."}

The ``set`` payload is the value already encoded to JSON text, so the
command is encoded twice and the child decodes the payload a second time.

Values read back with ``get`` may be cyclic (the name table holds itself
under ``_``). The child writes ``null`` wherever a container repeats one of
its own ancestors and lists each such spot in ``refs`` as
``[<path of the spot>, <path of the ancestor>]``, both from the root value;
``resolve_refs`` puts the shared references back.

Examples:
    >>> build_get("x").to_line()
    '{"kind":"get","variable":"x"}\\n'
    >>> build_set("x", {"a": 1}).payload
    '{"a": 1}'
    >>> v = resolve_refs({"n": 1, "_": None}, [(["_"], [])])
    >>> v["_"] is v
    True
"""

import json
import logging
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from pyinterp.lib.errors import ChannelError, EncodingError, RemoteError

logger = logging.getLogger(__name__)

KNOWN_KINDS: tuple[str, ...] = ("get", "set", "run")
"""Command kinds the bootstrap program dispatches."""

TABLE_NAME = "_"
"""Name under which the child's name table is bound to itself."""

KeyPath = list[str | int]
"""Keys and indexes leading from a root value to one of its parts."""


class Command(BaseModel):
    """A single request sent to the child interpreter.

    ``kind`` is left open so that unknown kinds can still be framed and
    sent; the child answers those with an error response.
    """

    kind: str = Field(min_length=1)
    variable: str | None = None
    payload: str | None = None
    limit: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_required_fields(self) -> Self:
        """Enforce the per-kind field requirements."""
        if self.kind in ("get", "set") and not self.variable:
            raise ValueError(f"{self.kind} command requires a variable name")
        if self.kind in ("set", "run") and self.payload is None:
            raise ValueError(f"{self.kind} command requires a payload")
        return self

    def to_line(self) -> str:
        """Serialize to a single protocol line."""
        return self.model_dump_json(exclude_none=True) + "\n"


class GetResponse(BaseModel):
    kind: Literal["get"]
    variable: str
    value: Any = None
    refs: list[tuple[KeyPath, KeyPath]] = Field(default_factory=list)


class SetResponse(BaseModel):
    kind: Literal["set"]
    variable: str


class RunResponse(BaseModel):
    kind: Literal["run"]
    output: str = ""
    stderr: str = ""
    truncated: bool = False


class ErrorResponse(BaseModel):
    """Failure reported by the child instead of a regular response."""

    kind: Literal["error"]
    error_type: str
    message: str = ""
    traceback: str = ""

    def to_exception(self) -> RemoteError:
        return RemoteError(self.error_type, self.message, self.traceback)


Response = Annotated[
    GetResponse | SetResponse | RunResponse | ErrorResponse,
    Field(discriminator="kind"),
]

RESPONSE_ADAPTER: TypeAdapter[Response] = TypeAdapter(Response)


def encode_value(value: object) -> str:
    """Encode a value to JSON text, raising EncodingError on failure."""
    try:
        return json.dumps(value)
    except (TypeError, ValueError, RecursionError) as e:
        raise EncodingError(f"cannot encode {type(value).__name__}: {e}") from e


def build_get(name: str) -> Command:
    return Command(kind="get", variable=name)


def build_set(name: str, value: object) -> Command:
    """Build a set command carrying ``value`` pre-encoded as JSON text.

    Raises:
        EncodingError: If ``value`` is not JSON serializable.
    """
    return Command(kind="set", variable=name, payload=encode_value(value))


def build_run(script: str, limit: int | None = None) -> Command:
    """Build a run command; ``limit`` caps the captured output in characters."""
    return Command(kind="run", payload=script, limit=limit)


def parse_response(line: str | bytes) -> Response:
    """Decode one response line.

    The line is decoded with ``json`` first so that every string the child
    can emit (lone surrogates included) is accepted.

    Raises:
        ChannelError: If the line is not a valid response object.
    """
    try:
        return RESPONSE_ADAPTER.validate_python(json.loads(line))
    except ValueError as e:
        logger.warning("Malformed response line: %r", line[:200])
        raise ChannelError(f"malformed response: {line[:200]!r}") from e


def resolve_refs(value: Any, refs: list[tuple[KeyPath, KeyPath]]) -> Any:
    """Put shared references back into a decoded ``get`` value.

    Each entry names a spot holding a placeholder and the ancestor that
    belongs there. A well-formed reply only names real containers.

    Raises:
        ChannelError: If a path does not lead anywhere in ``value``.
    """

    def lookup(path: KeyPath) -> Any:
        node = value
        for step in path:
            node = node[step]
        return node

    for spot, target in refs:
        if not spot:
            raise ChannelError("reference cannot replace the root value")
        try:
            parent = lookup(spot[:-1])
            parent[spot[-1]] = lookup(target)
        except (KeyError, IndexError, TypeError) as e:
            raise ChannelError(f"dangling reference {spot} -> {target}") from e
    return value
