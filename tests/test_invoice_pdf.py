from __future__ import annotations

import io
import math
import re
from pathlib import Path

import pytest
from pypdf import PdfReader

from atlas.core.invoices import InvoiceDraft
from atlas.pdf.invoice_generator import generate_invoice_pdf, prepare_bundle, write_invoice_pdf
from atlas.styles.templates import TEMPLATES


def _a4_size_points() -> tuple[float, float]:
    # ReportLab A4 in points
    return (595.2755905511812, 841.8897637795277)


def _acme_draft(**overrides) -> InvoiceDraft:
    data = {
        "business_name": "Acme (Pty) Ltd",
        "business_address": "1 Main Street\nCape Town",
        "client_name": "Test Customer",
        "client_email": "billing@test.example",
        "client_address": "Line 1\nLine 2",
        "issue_date": "2025-08-09",
        "due_date": "2025-08-23",
        "currency": "USD",
        "tax_rate": 0.10,
        "lines": [{"description": "Design (phase 1)", "quantity": 2, "rate": 150.00}],
    }
    data.update(overrides)
    return InvoiceDraft.from_dict(data)


def test_invoice_pdf_drawn(tmp_path: Path) -> None:
    out_pdf = tmp_path / "drawn.pdf"
    write_invoice_pdf(out_pdf, _acme_draft(), locale="en-US")

    # Exactly one page of A4 size
    reader = PdfReader(str(out_pdf))
    assert len(reader.pages) == 1

    page = reader.pages[0]
    box = page.mediabox
    width = float(box.right - box.left)
    height = float(box.top - box.bottom)
    a4w, a4h = _a4_size_points()
    # Allow a small tolerance for float conversions
    assert math.isclose(width, a4w, rel_tol=0, abs_tol=1.0)
    assert math.isclose(height, a4h, rel_tol=0, abs_tol=1.0)

    text = page.extract_text() or ""
    assert "Acme (Pty) Ltd" in text
    assert "Test Customer" in text
    assert "$330.00" in text
    assert "Rate" in text and "Amount" in text


def test_acme_totals_and_escaped_business_name() -> None:
    draft = _acme_draft()
    bundle = prepare_bundle(draft, locale="en-US")
    assert bundle.totals.subtotal == pytest.approx(300.00)
    assert bundle.totals.tax_amount == pytest.approx(30.00)
    assert bundle.totals.total == pytest.approx(330.00)

    data = generate_invoice_pdf(draft, locale="en-US")
    assert b"(Acme \\(Pty\\) Ltd) Tj" in data
    assert b"(Design \\(phase 1\\)) Tj" in data


def test_document_info_names_client_and_business() -> None:
    reader = PdfReader(io.BytesIO(generate_invoice_pdf(_acme_draft())))
    meta = reader.metadata
    assert meta is not None
    assert meta.title == "Invoice Test Customer"
    assert meta.author == "Acme (Pty) Ltd"
    assert meta.producer == "Invoice Atlas"


@pytest.mark.parametrize("template_id", sorted(TEMPLATES))
def test_every_template_renders_a_readable_page(template_id: str) -> None:
    draft = _acme_draft(notes="Thanks for the work.\nPay by bank transfer.")
    data = generate_invoice_pdf(draft, template_id=template_id, premium=True)
    reader = PdfReader(io.BytesIO(data))
    assert len(reader.pages) == 1
    text = reader.pages[0].extract_text() or ""
    assert "Test Customer" in text


def test_empty_draft_still_renders() -> None:
    data = generate_invoice_pdf(InvoiceDraft())
    reader = PdfReader(io.BytesIO(data))
    assert len(reader.pages) == 1


def test_unknown_currency_uses_plain_fallback() -> None:
    data = generate_invoice_pdf(_acme_draft(currency="XYZ"))
    text = PdfReader(io.BytesIO(data)).pages[0].extract_text() or ""
    assert "XYZ 330.00" in text


def test_write_creates_parent_dirs(tmp_path: Path) -> None:
    out = write_invoice_pdf(tmp_path / "nested" / "dir" / "inv.pdf", _acme_draft())
    assert out.exists()
    assert out.read_bytes().startswith(b"%PDF-1.4")


def _offsets(data: bytes) -> list[int]:
    start = int(data.rsplit(b"startxref\n", 1)[1].split(b"\n", 1)[0])
    assert data[start:].startswith(b"xref\n0 8\n")
    rows = data[start:].split(b"trailer", 1)[0].split(b"\n")[2:10]
    assert all(len(r) == 19 for r in rows)  # 20 bytes with the newline
    return [int(r[:10]) for r in rows[1:]]


def test_generated_file_has_valid_xref_and_stream_length() -> None:
    draft = _acme_draft(
        business_name="Café Nord – Ltd",
        client_name="Zoë Müller",
        notes="Paid in € — thanks",
        currency="EUR",
    )
    data = generate_invoice_pdf(draft, template_id="seikyu", locale="de-DE", premium=True)

    for number, offset in enumerate(_offsets(data), start=1):
        assert data[offset:].startswith(f"{number} 0 obj\n".encode("ascii"))

    m = re.search(rb"<< /Length (\d+) >>\nstream\n", data)
    assert m is not None
    length = int(m.group(1))
    assert data[m.end() + length:].startswith(b"\nendstream")
    body = data[m.end():m.end() + length]
    assert b"(Caf\xe9 Nord \x96 Ltd) Tj" in body

    assert b"/Info 7 0 R" in data
    info = data[data.index(b"7 0 obj\n"):]
    assert b"/Title (Invoice Zo\xeb M\xfcller)" in info
    assert b"/Author (Caf\xe9 Nord \x96 Ltd)" in info


def test_client_name_with_pdf_delimiters_is_escaped_once() -> None:
    data = generate_invoice_pdf(_acme_draft(client_name="Smith (Jr) \\ Co"))
    assert b"(Smith \\(Jr\\) \\\\ Co) Tj" in data
    assert b"\\\\\\\\" not in data

    for operand in re.findall(rb"\n\((.*)\) Tj\n", data):
        bare = operand.replace(b"\\\\", b"").replace(b"\\(", b"").replace(b"\\)", b"")
        assert b"(" not in bare and b")" not in bare
