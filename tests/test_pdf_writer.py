from __future__ import annotations

import re

from atlas.pdf.primitives import Font, fill_rect, text
from atlas.pdf.pdf_writer import assemble_pdf, content_stream

STREAM_RE = re.compile(rb"<< /Length (\d+) >>\nstream\n")


def _sample_pdf() -> bytes:
    ops = (
        fill_rect(56, 700, 100, 20, (29, 95, 191), tag="header"),
        *text("Acme (Pty) Ltd", 60, 705, 12, Font.BOLD, (255, 255, 255)),
        *text("Café – 100 €", 60, 680, 10),
    )
    return assemble_pdf(ops, title="Invoice Acme", author="Acme (Pty) Ltd")


def _xref_offsets(data: bytes) -> list[int]:
    start = int(data.rsplit(b"startxref\n", 1)[1].split(b"\n", 1)[0])
    assert data[start:].startswith(b"xref\n0 8\n")
    rows = data[start:].split(b"\n")[2:10]
    assert rows[0] == b"0000000000 65535 f "
    return [int(r[:10]) for r in rows[1:]]


def test_header_and_trailer() -> None:
    data = _sample_pdf()
    assert data.startswith(b"%PDF-1.4\n")
    assert data.endswith(b"%%EOF\n")
    assert b"/Size 8 /Root 1 0 R /Info 7 0 R" in data


def test_xref_offsets_point_at_objects() -> None:
    data = _sample_pdf()
    offsets = _xref_offsets(data)
    assert len(offsets) == 7
    for number, offset in enumerate(offsets, start=1):
        assert data[offset:].startswith(f"{number} 0 obj\n".encode("ascii"))


def test_xref_rows_are_twenty_bytes() -> None:
    data = _sample_pdf()
    start = int(data.rsplit(b"startxref\n", 1)[1].split(b"\n", 1)[0])
    table = data[start:].split(b"trailer", 1)[0]
    rows = table.split(b"\n", 2)[2]
    assert len(rows) == 8 * 20


def test_stream_length_matches_bytes() -> None:
    data = _sample_pdf()
    m = STREAM_RE.search(data)
    assert m is not None
    length = int(m.group(1))
    body = data[m.end():m.end() + length]
    assert data[m.end() + length:].startswith(b"\nendstream")
    # Non-ASCII text is counted in encoded bytes, not characters
    assert b"Caf\xe9 \x96 100 \x80" in body


def test_empty_content_stream() -> None:
    data = assemble_pdf(())
    assert b"<< /Length 0 >>\nstream\n\nendstream" in data
    assert content_stream(()) == b""


def test_page_resources_and_fonts() -> None:
    data = _sample_pdf()
    assert b"/MediaBox [0 0 595.28 841.89]" in data
    assert b"/Font << /F1 5 0 R /F2 6 0 R >>" in data
    assert b"/BaseFont /Helvetica /Encoding /WinAnsiEncoding" in data
    assert b"/BaseFont /Helvetica-Bold /Encoding /WinAnsiEncoding" in data


def test_bold_text_uses_second_font_resource() -> None:
    data = _sample_pdf()
    assert b"/F2 12.00 Tf\n1 0 0 1 60.00 705.00 Tm\n(Acme \\(Pty\\) Ltd) Tj" in data
    assert b"/F1 10.00 Tf" in data


def test_info_dictionary() -> None:
    data = _sample_pdf()
    assert b"/Producer (Invoice Atlas)" in data
    assert b"/Title (Invoice Acme)" in data
    assert b"/Author (Acme \\(Pty\\) Ltd)" in data
