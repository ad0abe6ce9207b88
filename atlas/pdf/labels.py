from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Callable, Mapping, Optional

from atlas.core.invoices import InvoiceStatus, coerce_status, describe_status
from atlas.pdf.primitives import encodable
from atlas.styles.templates import Template

TranslateFn = Callable[[str, str], str]


@dataclass(frozen=True)
class LabelBundle:
    """Every string the PDF draws, already translated. Defaults are the English fallbacks."""

    invoice_title: str = "Invoice"
    bill_to: str = "Bill to"
    issue_date: str = "Issued"
    due_date: str = "Due"
    status_label: str = "Status"
    status_value: str = "Draft"
    currency: str = "Currency"
    description: str = "Description"
    quantity: str = "Qty"
    rate: str = "Rate"
    amount: str = "Amount"
    subtotal: str = "Subtotal"
    tax: str = "Tax"
    total: str = "Total"
    notes: str = "Notes"
    total_due: str = "Total due"
    payment_summary: str = "Payment summary"
    seal_glyph: str = "印"
    seal_caption: str = "Authorised seal"
    # Replaces the last table row when lines do not fit on the page
    more_lines: str = "+ {count} more lines"
    # Empty unless the template asks for them
    thank_you: str = ""
    payment_details: str = ""


# Translation keys used by the workspace catalogues
_KEYS = {
    "invoice_title": "workspace.preview.invoiceTitle",
    "bill_to": "workspace.preview.billTo",
    "issue_date": "workspace.preview.issued",
    "due_date": "workspace.preview.due",
    "status_label": "workspace.preview.status",
    "currency": "workspace.preview.currency",
    "description": "workspace.preview.description",
    "quantity": "workspace.preview.quantity",
    "rate": "workspace.preview.rate",
    "amount": "workspace.preview.amount",
    "subtotal": "workspace.summary.subtotal",
    "tax": "workspace.summary.tax",
    "total": "workspace.summary.total",
    "notes": "workspace.preview.notes",
    "total_due": "workspace.preview.totalDue",
    "payment_summary": "workspace.preview.paymentSummary",
    "seal_glyph": "workspace.preview.hankoLabel",
    "seal_caption": "workspace.preview.hankoCaption",
    "more_lines": "workspace.preview.moreLines",
}


def _fallback_translate(key: str, fallback: str) -> str:
    return fallback


def _column_label(base: str, override: Optional[str], dual_language: bool) -> str:
    if not override:
        return base
    return f"{override} / {base}" if dual_language else override


def resolve_labels(
    template: Template,
    status: InvoiceStatus,
    translate: Optional[TranslateFn] = None,
    status_lookup: Optional[Mapping[InvoiceStatus, str]] = None,
) -> LabelBundle:
    """Resolve the label bundle for one render.

    Order of precedence: template label overrides, then the caller's
    translations, then the English defaults. Column overrides replace the
    translated title, or are prefixed to it for dual-language templates.
    """
    t = translate or _fallback_translate
    defaults = LabelBundle()
    values = {name: t(key, getattr(defaults, name)) or getattr(defaults, name) for name, key in _KEYS.items()}

    structure = template.structure
    known = {f.name for f in fields(LabelBundle)}
    values.update({k: v for k, v in structure.label_overrides.items() if k in known and v})

    columns = structure.column_labels
    dual = structure.dual_language
    if columns.description_secondary:
        values["description"] = f"{columns.description_secondary} / {values['description']}"
    else:
        values["description"] = _column_label(values["description"], columns.description, dual)
    values["quantity"] = _column_label(values["quantity"], columns.quantity, dual)
    values["rate"] = _column_label(values["rate"], columns.rate, dual)
    values["amount"] = _column_label(values["amount"], columns.amount, dual)

    status = coerce_status(status)
    lookup = status_lookup or {}
    values["status_value"] = lookup.get(status) or describe_status(status)

    if structure.show_thank_you and structure.thank_you_label:
        values["thank_you"] = structure.thank_you_label
    if structure.show_payment_details and structure.payment_details_value:
        label = structure.payment_details_label or "Payment details"
        values["payment_details"] = f"{label}: {structure.payment_details_value}"

    return replace(defaults, **values)


# Dropped rather than replaced by English when they cannot be drawn
_OPTIONAL = ("seal_glyph", "thank_you", "payment_details")


def printable_labels(labels: LabelBundle, fallback: LabelBundle) -> LabelBundle:
    """Fit a resolved bundle to the built-in WinAnsi fonts.

    Dual-language labels ("請求書 / Invoice") keep the parts that can be drawn.
    Anything else that cannot be drawn falls back to the matching fallback
    label, or is left empty for the optional captions and the seal glyph.
    """
    values = {}
    for f in fields(LabelBundle):
        value = getattr(labels, f.name)
        if encodable(value):
            continue
        parts = [p for p in value.split(" / ") if p.strip() and encodable(p)]
        if parts:
            values[f.name] = " / ".join(parts)
        elif f.name in _OPTIONAL:
            values[f.name] = ""
        else:
            values[f.name] = getattr(fallback, f.name)
    return replace(labels, **values)
