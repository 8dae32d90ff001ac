"""
Output writers for treecat.

Both writers work on a binary stream so file contents are copied byte for
byte. Paths are encoded with :func:`os.fsencode`.
"""

from __future__ import annotations

import os
from typing import BinaryIO

from .core import FileRecord, OutputError


class Writer:
    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def _emit(self, data: bytes) -> None:
        try:
            self.stream.write(data)
        except OSError as e:
            raise OutputError(f"Could not write output: {e}") from e

    def begin(self) -> None:
        pass

    def write(self, record: FileRecord) -> None:
        raise NotImplementedError

    def end(self) -> None:
        try:
            self.stream.flush()
        except OSError as e:
            raise OutputError(f"Could not write output: {e}") from e


class PlainWriter(Writer):
    """``path``, ``---``, contents, ``---`` for every file; no wrapper."""

    def write(self, record: FileRecord) -> None:
        self._emit(b"%s\n---\n%s\n---\n" % (os.fsencode(record.path), record.content))


class XmlWriter(Writer):
    """
    Claude-style ``<documents>`` bundle.

    The wrapper is written once by :meth:`begin` / :meth:`end`. ``index``
    counts emitted documents for the lifetime of the writer and is never
    reset, so several roots share one increasing sequence.
    """

    def __init__(self, stream: BinaryIO, start_index: int = 1):
        super().__init__(stream)
        self.index = start_index

    def begin(self) -> None:
        self._emit(b"<documents>\n")

    def write(self, record: FileRecord) -> None:
        self._emit(
            b'<document index="%d">\n'
            b"<source>%s</source>\n"
            b"<document_content>\n%s\n</document_content>\n"
            b"</document>\n" % (self.index, os.fsencode(record.path), record.content)
        )
        self.index += 1

    def end(self) -> None:
        self._emit(b"</documents>\n")
        super().end()


def make_writer(stream: BinaryIO, cxml: bool = False) -> Writer:
    return XmlWriter(stream) if cxml else PlainWriter(stream)
