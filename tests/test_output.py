from __future__ import annotations

import io

from treecat.core import FileRecord
from treecat.output import PlainWriter, XmlWriter, make_writer


def test_plain_writer_format() -> None:
    buf = io.BytesIO()
    writer = PlainWriter(buf)
    writer.begin()
    writer.write(FileRecord("src/a.py", b"print('a')"))
    writer.write(FileRecord("b.txt", b""))
    writer.end()
    assert buf.getvalue() == b"src/a.py\n---\nprint('a')\n---\nb.txt\n---\n\n---\n"


def test_xml_writer_wraps_once_and_numbers_documents() -> None:
    buf = io.BytesIO()
    writer = XmlWriter(buf)
    writer.begin()
    writer.write(FileRecord("a.py", b"one"))
    writer.write(FileRecord("b.py", b"two"))
    writer.end()
    assert buf.getvalue() == (
        b"<documents>\n"
        b'<document index="1">\n<source>a.py</source>\n'
        b"<document_content>\none\n</document_content>\n</document>\n"
        b'<document index="2">\n<source>b.py</source>\n'
        b"<document_content>\ntwo\n</document_content>\n</document>\n"
        b"</documents>\n"
    )
    assert writer.index == 3


def test_xml_writer_with_no_documents_still_writes_wrapper() -> None:
    buf = io.BytesIO()
    writer = XmlWriter(buf)
    writer.begin()
    writer.end()
    assert buf.getvalue() == b"<documents>\n</documents>\n"


def test_content_is_not_escaped_or_transcoded() -> None:
    buf = io.BytesIO()
    content = b"<tag attr=\"&\">\xff\xfe\r\n"
    PlainWriter(buf).write(FileRecord("x", content))
    assert content in buf.getvalue()


def test_make_writer_selects_format() -> None:
    assert isinstance(make_writer(io.BytesIO()), PlainWriter)
    assert isinstance(make_writer(io.BytesIO(), cxml=True), XmlWriter)
