"""Shared test fixtures.

Add fixtures here that are used across multiple test files.
"""

import sys
from collections.abc import Iterator
from typing import Any

import pytest

from pyinterp.lib.bootstrap import BOOTSTRAP_SCRIPT
from pyinterp.lib.interp import Interp, new_interp


@pytest.fixture
def bootstrap() -> dict[str, Any]:
    """Namespace of the bootstrap script, loaded without starting its loop."""
    namespace: dict[str, Any] = {"__name__": "pyinterp_bootstrap"}
    exec(BOOTSTRAP_SCRIPT, namespace)
    return namespace


@pytest.fixture
def interp() -> Iterator[Interp]:
    """A started interpreter running the current Python executable."""
    with new_interp(executable=sys.executable) as py:
        yield py
