from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, NamedTuple, Sequence, Tuple

from reportlab.lib.pagesizes import A4

from atlas.core.currency import DEFAULT_LOCALE, EMPTY_PLACEHOLDER, format_friendly_date, safe_amount
from atlas.core.invoices import describe_status
from atlas.pdf.bundle import RenderBundle
from atlas.pdf.labels import LabelBundle, printable_labels
from atlas.pdf.pdf_writer import assemble_pdf
from atlas.pdf.primitives import (
    Font,
    Op,
    Ops,
    ELLIPSIS,
    fill_rect,
    fit_text,
    printable_or,
    stroke_rect,
    text,
    text_block,
    text_centered,
    text_right,
    visible_lines,
    wrap_text,
)
from atlas.pdf.table_layout import MARGIN, ROW_HEIGHT, build_invoice_table, money, table_height
from atlas.styles.templates import HeaderLayout, TotalsStyle


# ===== Layout constants (tweak here) =====
PAGE_SIZE = A4
PAGE_WIDTH, PAGE_HEIGHT = PAGE_SIZE

CONTENT_LEFT = MARGIN
CONTENT_RIGHT = PAGE_WIDTH - MARGIN
CONTENT_WIDTH = CONTENT_RIGHT - CONTENT_LEFT
CONTENT_TOP = PAGE_HEIGHT - MARGIN

# Header band
HEADER_PAD_X = 24
TITLE_FONT_SIZE = 22
BUSINESS_FONT_SIZE = 15
ADDRESS_FONT_SIZE = 10
ADDRESS_LEADING = 13
ACCENT_BAR_WIDTH = 8


class _Band(NamedTuple):
    height: float
    title_drop: float     # baselines measured down from the band top
    business_drop: float
    address_drop: float
    address_lines: int


BANDS: Dict[HeaderLayout, _Band] = {
    HeaderLayout.STANDARD: _Band(120, 38, 62, 80, 3),
    HeaderLayout.JAPANESE: _Band(120, 38, 62, 80, 3),
    HeaderLayout.COMPACT: _Band(96, 32, 54, 72, 1),
}

# Badge (floats inside the band, right side)
BADGE_WIDTH = 170
BADGE_HEIGHT = 84
BADGE_INSET = 16
BADGE_PAD = 14
DATES_DROP = 16  # dates baseline below the band

# Body
BODY_DROP = 44
BLOCK_GAP = 20
LABEL_FONT_SIZE = 10
VALUE_FONT_SIZE = 10
SMALL_FONT_SIZE = 9
META_X = CONTENT_LEFT + 300
META_STEP = 32
CLIENT_ADDRESS_LINES = 4

# Totals
TOTALS_GAP = 24
TOTALS_LABEL_RIGHT = CONTENT_RIGHT - 110
TOTALS_RULE_WIDTH = 220
TOTAL_FONT_SIZE = 14
TOTALS_HEIGHT = 68
CARD_WIDTH = 220
CARD_HEIGHT = 100
CARD_PAD = 16

# Notes
NOTES_PAD_X = 20
NOTES_LEADING = 14
NOTES_PADDING = 44  # label band plus bottom padding
NOTES_TEXT_WIDTH = CONTENT_WIDTH - 2 * NOTES_PAD_X

# Seal
SEAL_SIZE = 64
SEAL_GLYPH_SIZE = 28
SEAL_CAPTION_SIZE = 8
SEAL_BLOCK_HEIGHT = SEAL_SIZE + 16  # square plus caption

# Space kept free at the bottom of the page
PAGE_BOTTOM = MARGIN
CAPTION_STEP = 20
MIN_TABLE_ROWS = 3


# ===== Blocks =====
def _money(bundle: RenderBundle, value: float) -> str:
    return money(safe_amount(value), bundle.currency, bundle.locale)


def _date(bundle: RenderBundle, value: object) -> str:
    return printable_or(format_friendly_date(value, bundle.locale), format_friendly_date(value, DEFAULT_LOCALE))


def _draw_header(bundle: RenderBundle) -> Tuple[Ops, float, float]:
    """Header band, accent bar and badge. Returns (records, band_bottom, badge_right)."""
    palette = bundle.template.palette
    labels = bundle.labels
    draft = bundle.draft
    band = BANDS.get(bundle.template.structure.header_layout, BANDS[HeaderLayout.STANDARD])
    top = CONTENT_TOP
    bottom = top - band.height
    ops: List[Op] = [fill_rect(CONTENT_LEFT, bottom, CONTENT_WIDTH, band.height, palette.header, tag="header")]

    accent_w = 0.0
    if palette.accent_bar is not None:
        accent_w = ACCENT_BAR_WIDTH
        ops.append(fill_rect(CONTENT_RIGHT - accent_w, bottom, accent_w, band.height, palette.accent_bar,
                             tag="accent-bar"))

    badge_right = CONTENT_RIGHT - BADGE_INSET - accent_w
    badge_x = badge_right - BADGE_WIDTH
    badge_y = bottom + (band.height - BADGE_HEIGHT) / 2
    badge_top = badge_y + BADGE_HEIGHT

    x = CONTENT_LEFT + HEADER_PAD_X
    max_w = badge_x - BADGE_INSET - x
    ink = palette.header_text
    ops.extend(text(fit_text(labels.invoice_title, max_w, TITLE_FONT_SIZE, Font.BOLD),
                    x, top - band.title_drop, TITLE_FONT_SIZE, Font.BOLD, ink, tag="title"))
    business = (draft.business_name or "").strip() or EMPTY_PLACEHOLDER
    ops.extend(text(fit_text(business, max_w, BUSINESS_FONT_SIZE, Font.BOLD),
                    x, top - band.business_drop, BUSINESS_FONT_SIZE, Font.BOLD, ink, tag="business"))
    address = [fit_text(ln, max_w, ADDRESS_FONT_SIZE) for ln in visible_lines(draft.business_address or "")]
    address_ops, _ = text_block(address[: band.address_lines], x, top - band.address_drop,
                                ADDRESS_FONT_SIZE, ADDRESS_LEADING, Font.REGULAR, ink, tag="business-address")
    ops.extend(address_ops)

    ops.append(fill_rect(badge_x, badge_y, BADGE_WIDTH, BADGE_HEIGHT, palette.badge_background, tag="badge"))
    bx = badge_x + BADGE_PAD
    inner_w = BADGE_WIDTH - 2 * BADGE_PAD
    total_text = _money(bundle, bundle.totals.total)
    ops.extend(text(fit_text(labels.total_due, inner_w, LABEL_FONT_SIZE), bx, badge_top - 22,
                    LABEL_FONT_SIZE, Font.REGULAR, palette.badge_text, tag="badge-label"))
    ops.extend(text(fit_text(total_text, inner_w, 18, Font.BOLD), bx, badge_top - 48, 18, Font.BOLD,
                    palette.badge_text, tag="badge-amount"))
    status = f"{labels.status_label}: {labels.status_value}"
    ops.extend(text(fit_text(status, inner_w, SMALL_FONT_SIZE), bx, badge_top - 68, SMALL_FONT_SIZE,
                    Font.REGULAR, palette.badge_text, tag="badge-status"))
    return tuple(ops), bottom, badge_right


def _draw_dates(bundle: RenderBundle, band_bottom: float, right_x: float) -> Ops:
    labels = bundle.labels
    issued = _date(bundle, bundle.draft.issue_date)
    due = _date(bundle, bundle.draft.due_date)
    line = f"{labels.issue_date}: {issued}   {labels.due_date}: {due}"
    return text_right(line, right_x, band_bottom - DATES_DROP, SMALL_FONT_SIZE, Font.REGULAR,
                      bundle.template.palette.muted_text, tag="dates")


def _draw_bill_to(bundle: RenderBundle, y_top: float) -> Tuple[Ops, float]:
    palette = bundle.template.palette
    draft = bundle.draft
    x = CONTENT_LEFT
    max_w = META_X - x - BLOCK_GAP
    ops: List[Op] = []
    ops.extend(text(bundle.labels.bill_to, x, y_top, LABEL_FONT_SIZE, Font.BOLD, palette.muted_text,
                    tag="bill-to-label"))
    y = y_top - 18
    name = (draft.client_name or "").strip() or EMPTY_PLACEHOLDER
    ops.extend(text(fit_text(name, max_w, 12, Font.BOLD), x, y, 12, Font.BOLD, palette.body_text,
                    tag="client-name"))
    y -= 16
    email = (draft.client_email or "").strip()
    if email:
        ops.extend(text(fit_text(email, max_w, VALUE_FONT_SIZE), x, y, VALUE_FONT_SIZE, Font.REGULAR,
                        palette.body_text, tag="client-email"))
        y -= 14
    address = [fit_text(ln, max_w, VALUE_FONT_SIZE) for ln in visible_lines(draft.client_address or "")]
    address_ops, y = text_block(address[:CLIENT_ADDRESS_LINES], x, y, VALUE_FONT_SIZE, 13, Font.REGULAR, palette.body_text,
                                tag="client-address")
    ops.extend(address_ops)
    return tuple(ops), y


def _draw_meta(bundle: RenderBundle, y_top: float) -> Tuple[Ops, float]:
    palette = bundle.template.palette
    labels = bundle.labels
    pairs = [
        (labels.issue_date, _date(bundle, bundle.draft.issue_date)),
        (labels.due_date, _date(bundle, bundle.draft.due_date)),
        (labels.currency, (bundle.currency or "").strip() or EMPTY_PLACEHOLDER),
    ]
    max_w = CONTENT_RIGHT - META_X
    ops: List[Op] = []
    y = y_top
    for label, value in pairs:
        ops.extend(text(fit_text(label, max_w, SMALL_FONT_SIZE), META_X, y, SMALL_FONT_SIZE, Font.REGULAR,
                        palette.muted_text, tag="meta-label"))
        ops.extend(text(fit_text(value, max_w, 11, Font.BOLD), META_X, y - 14, 11, Font.BOLD,
                        palette.body_text, tag="meta-value"))
        y -= META_STEP
    return tuple(ops), y + META_STEP - 28


def _draw_summary_card(bundle: RenderBundle, y_top: float) -> Tuple[Ops, float]:
    """Boxed list of total, subtotal, tax and status."""
    palette = bundle.template.palette
    labels = bundle.labels
    totals = bundle.totals
    bottom = y_top - CARD_HEIGHT
    x = CONTENT_LEFT + CARD_PAD
    inner_w = CARD_WIDTH - 2 * CARD_PAD
    ink = palette.badge_text
    ops: List[Op] = [fill_rect(CONTENT_LEFT, bottom, CARD_WIDTH, CARD_HEIGHT, palette.badge_background,
                               tag="summary-card")]
    ops.extend(text(fit_text(labels.payment_summary, inner_w, 11, Font.BOLD), x, y_top - 22, 11, Font.BOLD,
                    ink, tag="summary-card"))
    ops.extend(text(fit_text(_money(bundle, totals.total), inner_w, 16, Font.BOLD), x, y_top - 44, 16, Font.BOLD,
                    ink, tag="summary-card"))
    details = [
        f"{labels.subtotal}: {_money(bundle, totals.subtotal)}",
        f"{labels.tax}: {_money(bundle, totals.tax_amount)}",
        f"{labels.status_label}: {labels.status_value}",
    ]
    detail_ops, _ = text_block([fit_text(d, inner_w, SMALL_FONT_SIZE) for d in details], x, y_top - 62,
                               SMALL_FONT_SIZE, 14, Font.REGULAR, ink, tag="summary-card")
    ops.extend(detail_ops)
    return tuple(ops), bottom


def _draw_totals(bundle: RenderBundle, y_top: float) -> Tuple[Ops, float]:
    palette = bundle.template.palette
    labels = bundle.labels
    totals = bundle.totals
    ops: List[Op] = []
    rows = [
        (labels.subtotal, _money(bundle, totals.subtotal), y_top - 14),
        (labels.tax, _money(bundle, totals.tax_amount), y_top - 32),
    ]
    for label, value, y in rows:
        ops.extend(text_right(label, TOTALS_LABEL_RIGHT, y, VALUE_FONT_SIZE, Font.REGULAR, palette.muted_text,
                              tag="totals"))
        ops.extend(text_right(value, CONTENT_RIGHT, y, VALUE_FONT_SIZE, Font.REGULAR, palette.body_text,
                              tag="totals"))
    if bundle.template.structure.totals_style in (TotalsStyle.UNDERLINE, TotalsStyle.TABLE):
        ops.append(fill_rect(CONTENT_RIGHT - TOTALS_RULE_WIDTH, y_top - 42, TOTALS_RULE_WIDTH, 0.8,
                             palette.border, tag="totals-rule"))
    y = y_top - 60
    ops.extend(text_right(labels.total, TOTALS_LABEL_RIGHT, y, TOTAL_FONT_SIZE, Font.BOLD, palette.header,
                          tag="total"))
    ops.extend(text_right(_money(bundle, totals.total), CONTENT_RIGHT, y, TOTAL_FONT_SIZE, Font.BOLD, palette.header,
                          tag="total"))
    return tuple(ops), y_top - TOTALS_HEIGHT


def _draw_captions(bundle: RenderBundle, y_top: float) -> Tuple[Ops, float]:
    """Thank-you and payment-details lines, when the template shows them."""
    ops: List[Op] = []
    y = y_top
    for caption in (bundle.labels.thank_you, bundle.labels.payment_details):
        if not caption:
            continue
        y -= 14
        ops.extend(text(fit_text(caption, CONTENT_WIDTH, VALUE_FONT_SIZE), CONTENT_LEFT, y, VALUE_FONT_SIZE,
                        Font.REGULAR, bundle.template.palette.muted_text, tag="caption"))
        y -= 6
    return tuple(ops), y


def _notes_lines(bundle: RenderBundle) -> List[str]:
    paragraphs = visible_lines(bundle.draft.notes or "")
    return [ln for p in paragraphs for ln in wrap_text(p, NOTES_TEXT_WIDTH, VALUE_FONT_SIZE)]


def _clip_lines(lines: Sequence[str], limit: int) -> List[str]:
    """Keep at most limit lines; the last kept line gets an ellipsis when some are dropped."""
    if len(lines) <= limit:
        return list(lines)
    if limit <= 0:
        return []
    kept = list(lines[:limit])
    kept[-1] = fit_text(kept[-1] + " " + ELLIPSIS, NOTES_TEXT_WIDTH, VALUE_FONT_SIZE)
    return kept


def notes_height(count: int) -> float:
    return count * NOTES_LEADING + NOTES_PADDING if count else 0


def _draw_notes(bundle: RenderBundle, lines: Sequence[str], y_top: float) -> Tuple[Ops, float]:
    """Notes panel sized to its wrapped lines. Nothing at all without lines."""
    if not lines:
        return (), y_top
    palette = bundle.template.palette
    height = notes_height(len(lines))
    bottom = y_top - height
    x = CONTENT_LEFT + NOTES_PAD_X
    ops: List[Op] = [fill_rect(CONTENT_LEFT, bottom, CONTENT_WIDTH, height, palette.notes_background,
                               tag="notes-background")]
    ops.extend(text(bundle.labels.notes, x, y_top - 22, 11, Font.BOLD, palette.body_text, tag="notes-label"))
    body_ops, _ = text_block(lines, x, y_top - 40, VALUE_FONT_SIZE, NOTES_LEADING, Font.REGULAR,
                             palette.body_text, tag="notes")
    ops.extend(body_ops)
    return tuple(ops), bottom


def _draw_seal(bundle: RenderBundle, y_top: float) -> Tuple[Ops, float]:
    """Stroked hanko square with a centred glyph and a caption underneath."""
    palette = bundle.template.palette
    x = CONTENT_RIGHT - SEAL_SIZE
    bottom = y_top - SEAL_SIZE
    center_x = x + SEAL_SIZE / 2
    ops: List[Op] = [stroke_rect(x, bottom, SEAL_SIZE, SEAL_SIZE, palette.border, line_width=1.5, tag="seal")]
    ops.extend(text_centered(bundle.labels.seal_glyph, center_x, y_top - SEAL_SIZE / 2 - 10,
                             SEAL_GLYPH_SIZE, Font.BOLD, palette.muted_text, tag="seal-glyph"))
    ops.extend(text_centered(bundle.labels.seal_caption, center_x, bottom - 12, SEAL_CAPTION_SIZE,
                             Font.REGULAR, palette.muted_text, tag="seal-caption"))
    return tuple(ops), y_top - SEAL_BLOCK_HEIGHT


def _fit_to_fonts(bundle: RenderBundle) -> RenderBundle:
    fallback = replace(LabelBundle(), status_value=describe_status(bundle.draft.status))
    return replace(bundle, labels=printable_labels(bundle.labels, fallback))


# ===== Public API =====
def layout_invoice(bundle: RenderBundle) -> Ops:
    """Lay out the whole page as an ordered tuple of drawing records.

    Each block starts from where the previous one ended minus a fixed gap.
    The blocks under the table (totals, captions, notes, seal) always stay on
    the page: notes are clipped first, then table rows beyond the space left
    are summarised in a single "+ N more lines" row.
    """
    bundle = _fit_to_fonts(bundle)
    structure = bundle.template.structure
    ops: List[Op] = []

    header_ops, band_bottom, badge_right = _draw_header(bundle)
    ops.extend(header_ops)
    ops.extend(_draw_dates(bundle, band_bottom, badge_right))

    body_top = band_bottom - BODY_DROP
    bill_ops, bill_bottom = _draw_bill_to(bundle, body_top)
    meta_ops, meta_bottom = _draw_meta(bundle, body_top)
    ops.extend(bill_ops)
    ops.extend(meta_ops)
    table_top = min(bill_bottom, meta_bottom) - BLOCK_GAP

    # Fixed space needed below the table
    section = max(TOTALS_HEIGHT, CARD_HEIGHT if structure.show_payment_summary else 0)
    captions = sum(1 for c in (bundle.labels.thank_you, bundle.labels.payment_details) if c)
    reserve = TOTALS_GAP + section + captions * CAPTION_STEP
    if structure.show_seal:
        reserve += BLOCK_GAP + SEAL_BLOCK_HEIGHT
    free = table_top - PAGE_BOTTOM - reserve

    lines = bundle.draft.lines
    notes = _notes_lines(bundle)
    if notes:
        min_rows = min(len(lines), MIN_TABLE_ROWS)
        room = free - table_height(min_rows) - BLOCK_GAP - NOTES_PADDING
        notes = _clip_lines(notes, int(room // NOTES_LEADING))
    if notes:
        free -= BLOCK_GAP + notes_height(len(notes))
    max_rows = max(1, int((free - table_height(0)) // ROW_HEIGHT))

    table_ops, y = build_invoice_table(
        lines,
        bundle.labels,
        bundle.template,
        table_top,
        bundle.locale,
        bundle.currency,
        max_rows=max_rows,
    )
    ops.extend(table_ops)

    totals_top = y - TOTALS_GAP
    section_bottom = totals_top
    if structure.show_payment_summary:
        card_ops, section_bottom = _draw_summary_card(bundle, totals_top)
        ops.extend(card_ops)
    totals_ops, totals_bottom = _draw_totals(bundle, totals_top)
    ops.extend(totals_ops)
    y = min(section_bottom, totals_bottom)

    caption_ops, y = _draw_captions(bundle, y)
    ops.extend(caption_ops)

    if notes:
        notes_ops, y = _draw_notes(bundle, notes, y - BLOCK_GAP)
        ops.extend(notes_ops)

    if structure.show_seal:
        seal_ops, y = _draw_seal(bundle, y - BLOCK_GAP)
        ops.extend(seal_ops)

    return tuple(ops)


def build_invoice_pdf(bundle: RenderBundle) -> bytes:
    """Render the bundle to the bytes of a single-page A4 PDF.

    Pure: the same bundle always yields the same bytes. Writing or offering the
    file for download is up to the caller.
    """
    labels = _fit_to_fonts(bundle).labels
    client = (bundle.draft.client_name or "").strip()
    title = f"{labels.invoice_title} {client}".strip()
    author = (bundle.draft.business_name or "").strip() or None
    return assemble_pdf(layout_invoice(bundle), PAGE_SIZE, title=title, author=author)
