"""Binary assembly of a minimal single-page PDF 1.4 file.

Object graph:
  1 catalog -> 2 page tree -> 3 page (media box, /F1 /F2 resources, contents 4)
  4 content stream, 5 regular font, 6 bold font, 7 document info

Every offset in the xref table is taken from the bytes actually written.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from reportlab.lib.pagesizes import A4

from atlas.pdf.primitives import TEXT_ENCODING, Font, Op, escape_pdf_text, pdf_safe, render_operators

PDF_HEADER = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"
PDF_MIME_TYPE = "application/pdf"
PRODUCER = "Invoice Atlas"

FONT_RESOURCES: Mapping[Font, str] = MappingProxyType({Font.REGULAR: "F1", Font.BOLD: "F2"})
FONT_OBJECTS: Mapping[Font, int] = MappingProxyType({Font.REGULAR: 5, Font.BOLD: 6})


def pdf_string(value: object) -> str:
    return f"({escape_pdf_text(pdf_safe(value))})"


def content_stream(ops: Iterable[Op]) -> bytes:
    return render_operators(ops, FONT_RESOURCES).encode(TEXT_ENCODING, "replace")


def _font_dict(font: Font) -> bytes:
    return (
        f"<< /Type /Font /Subtype /Type1 /BaseFont /{font.base_font} "
        f"/Encoding /WinAnsiEncoding >>"
    ).encode("ascii")


def _page_dict(page_size: Tuple[float, float]) -> bytes:
    width, height = page_size
    fonts = " ".join(f"/{FONT_RESOURCES[f]} {FONT_OBJECTS[f]} 0 R" for f in Font)
    return (
        f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width:.2f} {height:.2f}] "
        f"/Resources << /Font << {fonts} >> >> /Contents 4 0 R >>"
    ).encode("ascii")


def _stream(data: bytes) -> bytes:
    # /Length counts the stream bytes only, not the EOL before endstream
    return f"<< /Length {len(data)} >>\nstream\n".encode("ascii") + data + b"\nendstream"


def _info_dict(title: Optional[str], author: Optional[str]) -> bytes:
    entries = [f"/Producer {pdf_string(PRODUCER)}"]
    if title:
        entries.append(f"/Title {pdf_string(title)}")
    if author:
        entries.append(f"/Author {pdf_string(author)}")
    return f"<< {' '.join(entries)} >>".encode(TEXT_ENCODING, "replace")


def assemble_pdf(
    ops: Iterable[Op],
    page_size: Tuple[float, float] = A4,
    title: Optional[str] = None,
    author: Optional[str] = None,
) -> bytes:
    """Wrap the drawing records into a complete PDF document."""
    bodies: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        _page_dict(page_size),
        _stream(content_stream(ops)),
        _font_dict(Font.REGULAR),
        _font_dict(Font.BOLD),
        _info_dict(title, author),
    ]

    out = bytearray(PDF_HEADER)
    offsets: List[int] = []
    for number, body in enumerate(bodies, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode("ascii") + body + b"\nendobj\n"

    xref_offset = len(out)
    size = len(bodies) + 1
    out += f"xref\n0 {size}\n".encode("ascii")
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode("ascii")
    out += (
        f"trailer\n<< /Size {size} /Root 1 0 R /Info {len(bodies)} 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode("ascii")
    return bytes(out)
