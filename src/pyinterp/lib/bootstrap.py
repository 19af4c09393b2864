"""Command loop injected into the child interpreter with ``-c``.

The script is the child's entire program. It keeps a name table (the
globals every ``run`` executes in) and answers one JSON line per command
read from stdin; see ``pyinterp.lib.commands`` for the message shapes.

- The process's real stdin/stdout are kept for protocol I/O and replaced by
  /dev/null, so stray reads and prints cannot corrupt the stream.
- ``run`` captures stdout/stderr per command and caps stdout at ``limit``
  characters.
- Any exception while handling a command becomes an ``error`` response and
  the loop keeps serving. ``SystemExit`` from a script ends the process.
- ``_`` is rebound to the table after every command that could replace it.

Nothing in the script runs on import unless ``__name__ == "__main__"``,
which lets tests exec it and call ``_dispatch`` directly.
"""

BOOTSTRAP_SCRIPT = r"""
import io, json, os, sys, traceback
from contextlib import redirect_stderr, redirect_stdout

_table = {}
_table["_"] = _table


def _plain(value, path, active, refs):
    if not isinstance(value, (dict, list, tuple)):
        return value
    marker = id(value)
    if marker in active:
        refs.append([path, active[marker]])
        return None
    active[marker] = path
    try:
        if isinstance(value, dict):
            out = {}
            for key, item in value.items():
                step = key if isinstance(key, str) else json.dumps(key)
                out[step] = _plain(item, path + [step], active, refs)
            return out
        return [_plain(item, path + [i], active, refs) for i, item in enumerate(value)]
    finally:
        del active[marker]


def _run(source, limit):
    out, err = io.StringIO(), io.StringIO()
    try:
        with redirect_stdout(out), redirect_stderr(err):
            exec(compile(source, "<run>", "exec"), _table)
    finally:
        _table.pop("__builtins__", None)
        _table["_"] = _table
    text = out.getvalue()
    truncated = limit is not None and len(text) > limit
    if truncated:
        text = text[:limit]
    return {"kind": "run", "output": text, "stderr": err.getvalue(), "truncated": truncated}


def _dispatch(cmd):
    kind = cmd.get("kind")
    if kind == "get":
        name = cmd["variable"]
        refs = []
        value = _plain(_table[name], [], {}, refs)
        return {"kind": "get", "variable": name, "value": value, "refs": refs}
    if kind == "set":
        name = cmd["variable"]
        if name == "_":
            raise ValueError("'_' is bound to the name table and cannot be set")
        _table[name] = json.loads(cmd["payload"])
        return {"kind": "set", "variable": name}
    if kind == "run":
        return _run(cmd["payload"], cmd.get("limit"))
    raise ValueError(f"invalid command kind: {kind!r}")


def _error(exc):
    return {
        "kind": "error",
        "error_type": type(exc).__name__,
        "message": str(exc),
        "traceback": traceback.format_exc(),
    }


def _serve(proto_in, proto_out):
    for line in proto_in:
        if not line.strip():
            continue
        try:
            reply = json.dumps(_dispatch(json.loads(line)))
        except Exception as exc:
            reply = json.dumps(_error(exc))
        proto_out.write(reply + "\n")
        proto_out.flush()


if __name__ == "__main__":
    _proto_in = io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8")
    _proto_out = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")
    sys.stdin = open(os.devnull, "r")
    sys.stdout = open(os.devnull, "w")
    _serve(_proto_in, _proto_out)
"""
