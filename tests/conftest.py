from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


@pytest.fixture
def ognl_log(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """caplog capturing everything the ognl_ast loggers emit."""
    caplog.set_level("DEBUG", logger="ognl_ast")
    return caplog


@pytest.fixture
def views() -> Dict[str, bool]:
    """Fresh REPL view flags, all off."""
    return {"tokens": False, "fragment": False}


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Parametrized case tables must not produce colliding node IDs."""
    del session
    del config

    counts = Counter(item.nodeid for item in items)
    duplicates = sorted(nodeid for nodeid, n in counts.items() if n > 1)
    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
    raise pytest.UsageError(f"Duplicate case ids in collected tests:\n{lines}")
