"""Tests for the bootstrap command loop, run in-process."""

import io
import json
from typing import Any

import pytest


def serve(bootstrap: dict[str, Any], *lines: str) -> list[dict[str, Any]]:
    """Feed lines through the command loop and decode every reply."""
    proto_out = io.StringIO()
    bootstrap["_serve"](io.StringIO("".join(lines)), proto_out)
    return [json.loads(line) for line in proto_out.getvalue().splitlines()]


class TestNameTable:
    """The table is bound to itself under ``_``."""

    def test_reflexive_binding(self, bootstrap: dict[str, Any]) -> None:
        table = bootstrap["_table"]
        assert table["_"] is table

    def test_get_table_marks_cycle(self, bootstrap: dict[str, Any]) -> None:
        reply = bootstrap["_dispatch"]({"kind": "get", "variable": "_"})

        assert reply["value"] == {"_": None}
        assert reply["refs"] == [[["_"], []]]
        json.dumps(reply)

    def test_set_table_name_rejected(self, bootstrap: dict[str, Any]) -> None:
        with pytest.raises(ValueError):
            bootstrap["_dispatch"]({"kind": "set", "variable": "_", "payload": "1"})
        assert bootstrap["_table"]["_"] is bootstrap["_table"]

    def test_run_cannot_unbind_table(self, bootstrap: dict[str, Any]) -> None:
        bootstrap["_dispatch"]({"kind": "run", "payload": "_ = 5"})
        assert bootstrap["_table"]["_"] is bootstrap["_table"]


class TestDispatch:
    """Tests for individual commands."""

    def test_set_then_get(self, bootstrap: dict[str, Any]) -> None:
        dispatch = bootstrap["_dispatch"]

        ack = dispatch({"kind": "set", "variable": "x", "payload": '{"a": [1, 2]}'})
        assert ack == {"kind": "set", "variable": "x"}

        reply = dispatch({"kind": "get", "variable": "x"})
        assert reply == {
            "kind": "get",
            "variable": "x",
            "value": {"a": [1, 2]},
            "refs": [],
        }

    def test_get_missing(self, bootstrap: dict[str, Any]) -> None:
        with pytest.raises(KeyError):
            bootstrap["_dispatch"]({"kind": "get", "variable": "missing"})

    def test_unknown_kind(self, bootstrap: dict[str, Any]) -> None:
        with pytest.raises(ValueError, match="invalid command kind"):
            bootstrap["_dispatch"]({"kind": "frobnicate"})

    def test_run_uses_table_as_globals(self, bootstrap: dict[str, Any]) -> None:
        reply = bootstrap["_dispatch"](
            {"kind": "run", "payload": "x = 2\nprint(x * 21)"}
        )

        assert reply == {"kind": "run", "output": "42\n", "stderr": "", "truncated": False}
        assert bootstrap["_table"]["x"] == 2
        assert "__builtins__" not in bootstrap["_table"]

    def test_run_truncates_at_limit(self, bootstrap: dict[str, Any]) -> None:
        reply = bootstrap["_dispatch"](
            {"kind": "run", "payload": "print('x' * 50)", "limit": 10}
        )

        assert reply["output"] == "x" * 10
        assert reply["truncated"] is True

    def test_run_captures_stderr(self, bootstrap: dict[str, Any]) -> None:
        reply = bootstrap["_dispatch"](
            {"kind": "run", "payload": "import sys\nsys.stderr.write('oops')"}
        )

        assert reply["output"] == ""
        assert reply["stderr"] == "oops"


class TestPlain:
    """Cycle marking only applies to ancestors."""

    def test_shared_sibling_not_marked(self, bootstrap: dict[str, Any]) -> None:
        shared = [1]
        assert bootstrap["_plain"]({"x": shared, "y": shared}, [], {}, []) == {
            "x": [1],
            "y": [1],
        }

    def test_nested_cycle_path(self, bootstrap: dict[str, Any]) -> None:
        inner: list[Any] = [1]
        inner.append(inner)
        refs: list[Any] = []
        assert bootstrap["_plain"]({"a": inner}, [], {}, refs) == {"a": [1, None]}
        assert refs == [[["a", 1], ["a"]]]

    def test_tuple_and_non_string_keys(self, bootstrap: dict[str, Any]) -> None:
        assert bootstrap["_plain"]({1: (2, 3)}, [], {}, []) == {"1": [2, 3]}


    def test_marker_shaped_data_is_plain(self, bootstrap: dict[str, Any]) -> None:
        refs: list[Any] = []
        value = {"a": {"$ref": ["b"]}, "b": 5}

        assert bootstrap["_plain"](value, [], {}, refs) == value
        assert refs == []


class TestServe:
    """Tests for the line loop."""

    def test_one_reply_per_command(self, bootstrap: dict[str, Any]) -> None:
        replies = serve(
            bootstrap,
            '{"kind": "set", "variable": "x", "payload": "7"}\n',
            "\n",
            '{"kind": "get", "variable": "x"}\n',
            '{"kind": "frobnicate"}\n',
            "not json\n",
            '{"kind": "get", "variable": "missing"}\n',
            '{"kind": "run", "payload": "print(x + 1)"}\n',
        )

        assert [r["kind"] for r in replies] == ["set", "get", "error", "error", "error", "run"]
        assert replies[1]["value"] == 7
        assert replies[2]["error_type"] == "ValueError"
        assert replies[3]["error_type"] == "JSONDecodeError"
        assert replies[4]["error_type"] == "KeyError"
        assert "Traceback" in replies[4]["traceback"]
        assert replies[5]["output"] == "8\n"

    def test_script_error_reply(self, bootstrap: dict[str, Any]) -> None:
        replies = serve(bootstrap, '{"kind": "run", "payload": "1 / 0"}\n')

        assert replies[0]["kind"] == "error"
        assert replies[0]["error_type"] == "ZeroDivisionError"

    def test_unencodable_value_reply(self, bootstrap: dict[str, Any]) -> None:
        replies = serve(
            bootstrap,
            '{"kind": "run", "payload": "f = lambda: None"}\n',
            '{"kind": "get", "variable": "f"}\n',
        )

        assert replies[1]["kind"] == "error"
        assert replies[1]["error_type"] == "TypeError"

    def test_system_exit_ends_loop(self, bootstrap: dict[str, Any]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            serve(
                bootstrap,
                '{"kind": "run", "payload": "raise SystemExit(3)"}\n',
                '{"kind": "get", "variable": "_"}\n',
            )
        assert exc_info.value.code == 3
