from __future__ import annotations

import pytest
from reportlab.pdfbase import pdfmetrics

from atlas.pdf.primitives import (
    ELLIPSIS,
    FillRect,
    Font,
    StrokeRect,
    Text,
    color_operands,
    encodable,
    escape_pdf_text,
    fit_text,
    pdf_safe,
    printable_or,
    render_operators,
    text,
    text_block,
    text_right,
    wrap_text,
)

FONTS = {Font.REGULAR: "F1", Font.BOLD: "F2"}


def test_escape_backslash_before_parentheses() -> None:
    assert escape_pdf_text("a\\b(c)") == "a\\\\b\\(c\\)"
    assert escape_pdf_text("plain") == "plain"


def test_pdf_safe_flattens_lines_and_replaces_unsupported() -> None:
    assert pdf_safe("one\ntwo\tthree\r") == "one two three "
    assert pdf_safe("印") == "?"
    assert pdf_safe("Café – €") == "Café – €"
    assert pdf_safe(None) == ""


def test_color_operands() -> None:
    assert color_operands((255, 0, 0)) == "1.000 0.000 0.000"
    assert color_operands((300, -5, 128)) == "1.000 0.000 0.502"


def test_empty_text_emits_nothing() -> None:
    assert text("", 10, 10, 10) == ()
    assert text(None, 10, 10, 10) == ()
    assert text_right("", 100, 10, 10) == ()


def test_fill_rect_operators() -> None:
    op = FillRect(10, 20, 30.5, 40, (0, 0, 0))
    assert op.operators(FONTS) == ["q", "0.000 0.000 0.000 rg", "10.00 20.00 30.50 40.00 re", "f", "Q"]


def test_stroke_rect_operators() -> None:
    op = StrokeRect(1, 2, 3, 4, (255, 255, 255), line_width=1.5)
    assert op.operators(FONTS) == ["q", "1.000 1.000 1.000 RG", "1.50 w", "1.00 2.00 3.00 4.00 re", "S", "Q"]


def test_text_operators_use_font_resource() -> None:
    op = Text(56, 700, "Total (due)", 14, Font.BOLD, (0, 0, 0))
    assert op.operators(FONTS) == [
        "BT",
        "0.000 0.000 0.000 rg",
        "/F2 14.00 Tf",
        "1 0 0 1 56.00 700.00 Tm",
        "(Total \\(due\\)) Tj",
        "ET",
    ]


def test_render_operators_joins_lines() -> None:
    ops = (FillRect(0, 0, 1, 1, (0, 0, 0)), Text(0, 0, "x", 9))
    assert render_operators(ops, FONTS).splitlines()[0] == "q"
    assert render_operators(ops, FONTS).splitlines()[-1] == "ET"


def test_text_right_aligns_to_edge() -> None:
    (op,) = text_right("Amount", 500, 10, 10, Font.BOLD)
    width = pdfmetrics.stringWidth("Amount", "Helvetica-Bold", 10)
    assert op.x == pytest.approx(500 - width)


def test_fit_text_truncates_with_ellipsis() -> None:
    long = "A very long description that cannot possibly fit in the column"
    fitted = fit_text(long, 100, 10)
    assert fitted.endswith(ELLIPSIS)
    assert pdfmetrics.stringWidth(fitted, "Helvetica", 10) <= 100
    assert fit_text("Short", 100, 10) == "Short"


def test_wrap_text_respects_width() -> None:
    lines = wrap_text("word " * 60, 200, 10)
    assert len(lines) > 1
    assert all(pdfmetrics.stringWidth(ln, "Helvetica", 10) <= 200 for ln in lines)
    assert wrap_text("", 200, 10) == []


def test_text_block_skips_blank_lines() -> None:
    ops, next_y = text_block("first\n\n  \nsecond", 10, 100, 10, 13)
    assert [op.text for op in ops] == ["first", "second"]
    assert [op.y for op in ops] == [100, 87]
    assert next_y == 74


def test_pdf_safe_folds_cldr_spacing_and_signs() -> None:
    # fr-FR groups with a narrow no-break space, ja-JP may use the fullwidth yen
    assert pdf_safe("1\u202f357,00\xa0€") == "1\xa0357,00\xa0€"
    assert pdf_safe("1\u2009000") == "1 000"
    assert pdf_safe("\uffe51,375") == "¥1,375"
    # Bidi marks vanish; Arabic-Indic digits still cannot be drawn
    assert pdf_safe("\u200f\u061c\u0661\u0662\u200e") == "??"


def test_encodable() -> None:
    assert encodable("Café – 100 €")
    assert encodable("\u202f\u200e\uffe5")
    assert not encodable("請求書")
    assert encodable(None)


def test_printable_or() -> None:
    assert printable_or("1\u202f000\xa0€", "EUR 1000.00") == "1\xa0000\xa0€"
    assert printable_or("١٬٣٥٧\xa0ج.م.\u200f", "EGP 1357.95") == "EGP 1357.95"
