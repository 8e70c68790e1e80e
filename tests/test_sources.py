"""Source hygiene: every backend module compiles cleanly with warnings as errors."""

import warnings
from pathlib import Path

import pytest

BACKEND = Path(__file__).resolve().parent.parent / "backend"
SOURCES = sorted(BACKEND.rglob("*.py"))


def test_sources_found():
    assert any(path.name == "state.py" for path in SOURCES)


@pytest.mark.parametrize("path", SOURCES, ids=lambda p: str(p.relative_to(BACKEND)))
def test_compiles_without_warnings(path):
    # 非法转义序列（例如文档字符串里的 "\-"）在 3.12+ 上是 SyntaxWarning
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(path.read_text(encoding="utf-8"), str(path), "exec")
