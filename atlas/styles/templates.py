"""Invoice templates: PDF palettes and structure descriptors.

The registry is built once at import time and exposed as a read-only mapping.
Layout code only reads the structure flags; it never branches on template ids.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from reportlab.lib import colors

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

DEFAULT_TEMPLATE_ID = "villa-coastal"


def rgb(hex_code: str) -> RGB:
    """'#0b366b' -> (11, 54, 107)."""
    r, g, b = colors.HexColor(hex_code).rgb()
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


class HeaderLayout(str, Enum):
    STANDARD = "standard"
    JAPANESE = "japanese"  # dual-language headings
    COMPACT = "compact"


class TotalsStyle(str, Enum):
    TABLE = "table"
    UNDERLINE = "underline"
    SIDE_PANEL = "side-panel"
    BADGE = "badge"
    STACKED = "stacked"
    JAPANESE = "japanese"


class LineItemStyle(str, Enum):
    DEFAULT = "default"
    STRIPED = "striped"
    STRIPED_LIGHT = "striped-light"
    OUTLINED = "outlined"
    LEDGER = "ledger"
    SEPARATED = "separated"
    JAPANESE = "japanese"


class Tier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


@dataclass(frozen=True)
class PdfPalette:
    header: RGB
    header_text: RGB
    body_text: RGB
    muted_text: RGB
    badge_background: RGB
    badge_text: RGB
    table_header: RGB
    table_header_text: RGB
    border: RGB
    notes_background: RGB
    # Striped line styles still need a stripe colour
    table_stripe: Optional[RGB] = None
    accent_bar: Optional[RGB] = None


@dataclass(frozen=True)
class ColumnLabels:
    description: Optional[str] = None
    # Shown before the translated description title ("品目 / Item")
    description_secondary: Optional[str] = None
    quantity: Optional[str] = None
    rate: Optional[str] = None
    amount: Optional[str] = None


@dataclass(frozen=True)
class TemplateStructure:
    header_layout: HeaderLayout = HeaderLayout.STANDARD
    totals_style: TotalsStyle = TotalsStyle.SIDE_PANEL
    line_item_style: LineItemStyle = LineItemStyle.STRIPED
    column_labels: ColumnLabels = ColumnLabels()
    label_overrides: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    show_payment_details: bool = False
    payment_details_label: Optional[str] = None
    payment_details_value: Optional[str] = None
    show_thank_you: bool = False
    thank_you_label: Optional[str] = None
    # Boxed total/subtotal/tax/status card beside the totals
    show_payment_summary: bool = False
    # Stroked seal square under the notes (hanko)
    show_seal: bool = False

    @property
    def dual_language(self) -> bool:
        return self.header_layout is HeaderLayout.JAPANESE


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    palette: PdfPalette
    structure: TemplateStructure = TemplateStructure()
    tier: Tier = Tier.PREMIUM


_TEMPLATES: Tuple[Template, ...] = (
    Template(
        id=DEFAULT_TEMPLATE_ID,
        name="Villa Coastal",
        description=(
            "Deep azure header, booking summary capsule, and anchored totals "
            "designed after boutique resort receipts."
        ),
        palette=PdfPalette(
            header=rgb("#0b366b"),
            header_text=rgb("#ffffff"),
            body_text=rgb("#0f172a"),
            muted_text=rgb("#1e3a8a"),
            badge_background=rgb("#e0f2ff"),
            badge_text=rgb("#0b366b"),
            table_header=rgb("#1d5fbf"),
            table_header_text=rgb("#ffffff"),
            table_stripe=rgb("#eef6ff"),
            border=rgb("#c8d9f5"),
            notes_background=rgb("#f2f8ff"),
            accent_bar=rgb("#1d5fbf"),
        ),
        structure=TemplateStructure(
            totals_style=TotalsStyle.SIDE_PANEL,
            line_item_style=LineItemStyle.STRIPED_LIGHT,
            column_labels=ColumnLabels(quantity="Nights"),
            show_thank_you=True,
            thank_you_label="We appreciate your stay with us.",
        ),
        tier=Tier.FREE,
    ),
    Template(
        id="atelier-minimal",
        name="Atelier Minimal",
        description="High-contrast monochrome layout with right-aligned metadata and crisp signature footer.",
        palette=PdfPalette(
            header=rgb("#0f172a"),
            header_text=rgb("#ffffff"),
            body_text=rgb("#111827"),
            muted_text=rgb("#475569"),
            badge_background=rgb("#f8fafc"),
            badge_text=rgb("#0f172a"),
            table_header=rgb("#111827"),
            table_header_text=rgb("#ffffff"),
            border=rgb("#e2e8f0"),
            notes_background=rgb("#f8fafc"),
        ),
        structure=TemplateStructure(
            totals_style=TotalsStyle.UNDERLINE,
            line_item_style=LineItemStyle.OUTLINED,
        ),
    ),
    Template(
        id="royal-balance",
        name="Royal Balance",
        description="Magenta-to-violet gradient bar with balance badge and contrasting totals ribbon.",
        palette=PdfPalette(
            header=rgb("#392f87"),
            header_text=rgb("#ffffff"),
            body_text=rgb("#2d0a44"),
            muted_text=rgb("#be185d"),
            badge_background=rgb("#fdf2f8"),
            badge_text=rgb("#be185d"),
            table_header=rgb("#7e22ce"),
            table_header_text=rgb("#ffffff"),
            table_stripe=rgb("#f5d0fe"),
            border=rgb("#e9d5ff"),
            notes_background=rgb("#fdf2f8"),
            accent_bar=rgb("#f472b6"),
        ),
        structure=TemplateStructure(
            totals_style=TotalsStyle.BADGE,
            line_item_style=LineItemStyle.STRIPED,
            show_thank_you=True,
            thank_you_label="Thank you for your business.",
        ),
    ),
    Template(
        id="harbour-slate",
        name="Harbour Slate",
        description="Cool grey-blue masthead, reservation details, and signature strip inspired by travel folios.",
        palette=PdfPalette(
            header=rgb("#012a4a"),
            header_text=rgb("#ffffff"),
            body_text=rgb("#0f172a"),
            muted_text=rgb("#1d4e89"),
            badge_background=rgb("#e7effb"),
            badge_text=rgb("#1d4e89"),
            table_header=rgb("#1d4e89"),
            table_header_text=rgb("#ffffff"),
            border=rgb("#cbd5e1"),
            notes_background=rgb("#f1f5f9"),
            accent_bar=rgb("#5fa8d3"),
        ),
        structure=TemplateStructure(
            totals_style=TotalsStyle.TABLE,
            line_item_style=LineItemStyle.SEPARATED,
        ),
    ),
    Template(
        id="seikyu",
        name="Seikyūsho",
        description="Dual-language headings, hanko placeholder, and tax summary for Japanese invoices.",
        palette=PdfPalette(
            header=rgb("#ef4444"),
            header_text=rgb("#ffffff"),
            body_text=rgb("#111827"),
            muted_text=rgb("#b91c1c"),
            badge_background=rgb("#fff7ed"),
            badge_text=rgb("#b91c1c"),
            table_header=rgb("#ef4444"),
            table_header_text=rgb("#ffffff"),
            table_stripe=rgb("#ffe4e6"),
            border=rgb("#fecaca"),
            notes_background=rgb("#fff7ed"),
            accent_bar=rgb("#f97316"),
        ),
        structure=TemplateStructure(
            header_layout=HeaderLayout.JAPANESE,
            totals_style=TotalsStyle.JAPANESE,
            line_item_style=LineItemStyle.JAPANESE,
            column_labels=ColumnLabels(
                description_secondary="品目",
                quantity="数量",
                rate="単価",
                amount="金額",
            ),
            label_overrides=MappingProxyType({
                "invoice_title": "請求書 / Invoice",
                "bill_to": "請求先 / Bill to",
                "issue_date": "発行日 / Issued",
                "due_date": "支払期日 / Due",
                "status_label": "ステータス / Status",
                "currency": "通貨 / Currency",
                "subtotal": "小計 / Subtotal",
                "tax": "税額 / Tax",
                "total": "合計 / Total",
                "notes": "備考 / Notes",
            }),
            show_payment_details=True,
            payment_details_label="Payment details",
            payment_details_value="Bank transfer — due on receipt",
            show_thank_you=True,
            thank_you_label="いつもありがとうございます。",
            show_seal=True,
        ),
    ),
    Template(
        id="aqua-ledger",
        name="Aqua Ledger",
        description="Modern teal banner with alternating table rows and slim metadata columns.",
        palette=PdfPalette(
            header=rgb("#0f766e"),
            header_text=rgb("#ffffff"),
            body_text=rgb("#064e3b"),
            muted_text=rgb("#0f766e"),
            badge_background=rgb("#ecfeff"),
            badge_text=rgb("#0f766e"),
            table_header=rgb("#0f766e"),
            table_header_text=rgb("#ffffff"),
            table_stripe=rgb("#d1fae5"),
            border=rgb("#a7f3d0"),
            notes_background=rgb("#ecfdf5"),
            accent_bar=rgb("#14b8a6"),
        ),
        structure=TemplateStructure(
            totals_style=TotalsStyle.STACKED,
            line_item_style=LineItemStyle.STRIPED,
            show_payment_summary=True,
        ),
    ),
    Template(
        id="classic-ledger",
        name="Classic Ledger",
        description="Pure structure without colour, ideal for legal or finance teams who need crisp print results.",
        palette=PdfPalette(
            header=rgb("#111827"),
            header_text=rgb("#ffffff"),
            body_text=rgb("#111827"),
            muted_text=rgb("#6b7280"),
            badge_background=rgb("#f3f4f6"),
            badge_text=rgb("#111827"),
            table_header=rgb("#111827"),
            table_header_text=rgb("#ffffff"),
            border=rgb("#d1d5db"),
            notes_background=rgb("#f9fafb"),
        ),
        structure=TemplateStructure(
            header_layout=HeaderLayout.COMPACT,
            totals_style=TotalsStyle.UNDERLINE,
            line_item_style=LineItemStyle.LEDGER,
            show_thank_you=True,
            thank_you_label="Authorised signature",
        ),
    ),
)

TEMPLATES: Mapping[str, Template] = MappingProxyType({t.id: t for t in _TEMPLATES})


def get_template(template_id: Optional[str]) -> Template:
    """Look up a template, falling back to the default for unknown ids."""
    template = TEMPLATES.get(template_id or DEFAULT_TEMPLATE_ID)
    if template is None:
        logger.warning("Unknown template %r; using %s", template_id, DEFAULT_TEMPLATE_ID)
        return TEMPLATES[DEFAULT_TEMPLATE_ID]
    return template


def select_template(template_id: Optional[str], premium: bool = False) -> Template:
    """Resolve the template a caller may render: premium templates need a premium plan."""
    template = get_template(template_id)
    if template.tier is Tier.PREMIUM and not premium:
        logger.info("Template %s requires premium; using %s", template.id, DEFAULT_TEMPLATE_ID)
        return TEMPLATES[DEFAULT_TEMPLATE_ID]
    return template
