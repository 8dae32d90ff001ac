from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

import pytest


@pytest.fixture
def make_tree(tmp_path: Path):
    """Create files from a ``{relative_path: content}`` mapping under tmp_path."""

    def _make(files: Dict[str, Union[str, bytes]], base: str = "proj") -> Path:
        root = tmp_path / base
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            target.write_bytes(content)
        return root

    return _make


class RecordingSink:
    def __init__(self) -> None:
        self.calls = []
        self.records = []

    def begin(self) -> None:
        self.calls.append("begin")

    def write(self, record) -> None:
        self.calls.append("write")
        self.records.append(record)

    def end(self) -> None:
        self.calls.append("end")

    @property
    def paths(self):
        return [r.path for r in self.records]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
