# atlas/pdf/table_layout.py
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import A4

from atlas.core.currency import EMPTY_PLACEHOLDER, format_currency, format_quantity, plain_currency
from atlas.core.invoices import LineItem, safe_quantity, safe_rate
from atlas.pdf.labels import LabelBundle
from atlas.pdf.primitives import Font, Op, Ops, fill_rect, fit_text, printable_or, stroke_rect, text, text_right
from atlas.styles.templates import LineItemStyle, Template

PAGE_WIDTH, _PAGE_HEIGHT = A4
MARGIN = 56
TABLE_LEFT = MARGIN
TABLE_RIGHT = PAGE_WIDTH - MARGIN
TABLE_WIDTH = TABLE_RIGHT - TABLE_LEFT

# Column positions are fixed offsets from the margin, whatever the template
COL_DESC_X = TABLE_LEFT + 10
COL_QTY_X = TABLE_LEFT + 270
COL_RATE_X = TABLE_LEFT + 330
COL_AMOUNT_RIGHT = TABLE_RIGHT - 10
COL_GAP = 12

HEADER_ROW_HEIGHT = 24
ROW_HEIGHT = 22
HEADER_BASELINE = 16  # from the top of the header row
ROW_BASELINE = 15     # from the top of a body row
HEADER_FONT_SIZE = 10
CELL_FONT_SIZE = 10
RULE_WIDTH = 0.8
ROW_RULE_WIDTH = 0.4
OUTLINE_WIDTH = 0.8

STRIPED_STYLES = (LineItemStyle.STRIPED, LineItemStyle.STRIPED_LIGHT, LineItemStyle.JAPANESE)
RULED_STYLES = (LineItemStyle.LEDGER, LineItemStyle.SEPARATED)


def money(value: float, currency: str, locale: str) -> str:
    """Locale-formatted amount, or "<CODE> n.nn" when the built-in fonts cannot draw it."""
    return printable_or(format_currency(value, currency, locale), plain_currency(value, currency))


def table_height(rows: int) -> float:
    return HEADER_ROW_HEIGHT + rows * ROW_HEIGHT + RULE_WIDTH


def striped_rows(count: int, has_stripe: bool) -> List[int]:
    """Row indexes that receive the stripe fill: every other row starting at 0."""
    return [i for i in range(count) if has_stripe and i % 2 == 0]


def _row_cells(line: LineItem, locale: str, currency: str) -> Tuple[str, str, str, str]:
    qty = safe_quantity(line.quantity)
    rate = safe_rate(line.rate)
    return (
        (line.description or "").strip() or EMPTY_PLACEHOLDER,
        format_quantity(qty),
        money(rate, currency, locale),
        money(qty * rate, currency, locale),
    )


def build_invoice_table(
    lines: Sequence[LineItem],
    labels: LabelBundle,
    template: Template,
    top: float,
    locale: str,
    currency: str,
    max_rows: Optional[int] = None,
) -> Tuple[Ops, float]:
    """
    Header row plus one fixed-height row per line, starting at y=top.

    Stripes are drawn before the text of their row. When max_rows is given and
    the lines do not fit, the last row slot reports how many lines were left out.
    Returns (records, bottom_y).
    """
    palette = template.palette
    style = template.structure.line_item_style
    ops: List[Op] = []

    shown: Sequence[LineItem] = lines
    hidden = 0
    if max_rows is not None and len(lines) > max_rows:
        shown = lines[: max(max_rows - 1, 0)]
        hidden = len(lines) - len(shown)

    ops.append(fill_rect(TABLE_LEFT, top - HEADER_ROW_HEIGHT, TABLE_WIDTH, HEADER_ROW_HEIGHT,
                         palette.table_header, tag="table-header"))
    head_y = top - HEADER_BASELINE
    head_color = palette.table_header_text
    desc_w = COL_QTY_X - COL_DESC_X - COL_GAP
    ops.extend(text(fit_text(labels.description, desc_w, HEADER_FONT_SIZE, Font.BOLD),
                    COL_DESC_X, head_y, HEADER_FONT_SIZE, Font.BOLD, head_color, tag="table-title"))
    ops.extend(text(fit_text(labels.quantity, COL_RATE_X - COL_QTY_X - 4, HEADER_FONT_SIZE, Font.BOLD),
                    COL_QTY_X, head_y, HEADER_FONT_SIZE, Font.BOLD, head_color, tag="table-title"))
    ops.extend(text(labels.rate, COL_RATE_X, head_y, HEADER_FONT_SIZE, Font.BOLD, head_color, tag="table-title"))
    ops.extend(text_right(labels.amount, COL_AMOUNT_RIGHT, head_y, HEADER_FONT_SIZE, Font.BOLD, head_color,
                          tag="table-title"))

    has_stripe = style in STRIPED_STYLES and palette.table_stripe is not None
    stripes = set(striped_rows(len(shown), has_stripe))
    rate_w = COL_AMOUNT_RIGHT - COL_RATE_X - 70
    row_top = top - HEADER_ROW_HEIGHT
    for i, line in enumerate(shown):
        if i in stripes:
            ops.append(fill_rect(TABLE_LEFT, row_top - ROW_HEIGHT, TABLE_WIDTH, ROW_HEIGHT,
                                 palette.table_stripe, tag="stripe"))
        description, qty, rate, amount = _row_cells(line, locale, currency)
        y = row_top - ROW_BASELINE
        ops.extend(text(fit_text(description, desc_w, CELL_FONT_SIZE), COL_DESC_X, y, CELL_FONT_SIZE,
                        Font.REGULAR, palette.body_text, tag="cell"))
        ops.extend(text(qty, COL_QTY_X, y, CELL_FONT_SIZE, Font.REGULAR, palette.body_text, tag="cell"))
        ops.extend(text(fit_text(rate, rate_w, CELL_FONT_SIZE), COL_RATE_X, y, CELL_FONT_SIZE,
                        Font.REGULAR, palette.body_text, tag="cell"))
        ops.extend(text_right(amount, COL_AMOUNT_RIGHT, y, CELL_FONT_SIZE, Font.BOLD, palette.body_text,
                              tag="cell"))
        row_top -= ROW_HEIGHT
        if style in RULED_STYLES and i < len(shown) - 1:
            ops.append(fill_rect(TABLE_LEFT, row_top - ROW_RULE_WIDTH / 2, TABLE_WIDTH, ROW_RULE_WIDTH,
                                 palette.border, tag="row-rule"))

    if hidden:
        note = labels.more_lines.replace("{count}", str(hidden))
        ops.extend(text(fit_text(note, desc_w, CELL_FONT_SIZE), COL_DESC_X, row_top - ROW_BASELINE,
                        CELL_FONT_SIZE, Font.REGULAR, palette.muted_text, tag="more-lines"))
        row_top -= ROW_HEIGHT

    ops.append(fill_rect(TABLE_LEFT, row_top - RULE_WIDTH, TABLE_WIDTH, RULE_WIDTH, palette.border,
                         tag="table-rule"))
    bottom = row_top - RULE_WIDTH
    if style is LineItemStyle.OUTLINED:
        ops.append(stroke_rect(TABLE_LEFT, bottom, TABLE_WIDTH, top - bottom, palette.border,
                               line_width=OUTLINE_WIDTH, tag="table-outline"))
    return tuple(ops), bottom
