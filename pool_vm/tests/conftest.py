from __future__ import annotations

from typing import Iterator

import pytest

from pool_vm.runtime import context as ctx

from ._helpers import in_frame


@pytest.fixture
def frame() -> Iterator[ctx.CallFrame]:
    with in_frame() as f:
        yield f
