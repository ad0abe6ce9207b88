"""
Invoice PDF entry points.

prepare_bundle() turns a raw draft into everything the layout needs (clean
lines, totals, template, labels); generate_invoice_pdf() renders it to bytes
and write_invoice_pdf() saves those bytes to disk.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Optional, Union

from atlas.core.currency import DEFAULT_LOCALE, is_supported_currency
from atlas.core.invoices import InvoiceDraft, InvoiceStatus, calculate_totals, clean_lines
from atlas.pdf.bundle import RenderBundle
from atlas.pdf.labels import TranslateFn, resolve_labels
from atlas.pdf.pdf_draw import build_invoice_pdf
from atlas.styles.templates import select_template

logger = logging.getLogger(__name__)


def prepare_bundle(
    draft: InvoiceDraft,
    *,
    template_id: Optional[str] = None,
    locale: str = DEFAULT_LOCALE,
    premium: bool = False,
    translate: Optional[TranslateFn] = None,
    status_lookup: Optional[Mapping[InvoiceStatus, str]] = None,
) -> RenderBundle:
    """Clean the draft's lines, compute totals and resolve template and labels."""
    lines = clean_lines(draft.lines)
    cleaned = replace(draft, lines=lines)
    totals = calculate_totals(lines, draft.tax_rate)
    template = select_template(template_id or draft.template_id, premium)
    labels = resolve_labels(template, draft.status, translate, status_lookup)

    currency = (draft.currency or "").strip().upper()
    if not is_supported_currency(currency):
        logger.warning("Unknown currency %r; amounts use the plain fallback format", draft.currency)

    return RenderBundle(
        draft=cleaned,
        totals=totals,
        template=template,
        labels=labels,
        locale=locale or DEFAULT_LOCALE,
        currency=currency,
    )


def generate_invoice_pdf(
    draft: InvoiceDraft,
    *,
    template_id: Optional[str] = None,
    locale: str = DEFAULT_LOCALE,
    premium: bool = False,
    translate: Optional[TranslateFn] = None,
    status_lookup: Optional[Mapping[InvoiceStatus, str]] = None,
) -> bytes:
    bundle = prepare_bundle(
        draft,
        template_id=template_id,
        locale=locale,
        premium=premium,
        translate=translate,
        status_lookup=status_lookup,
    )
    logger.info("Building PDF (template=%s, lines=%s)", bundle.template.id, len(bundle.draft.lines))
    data = build_invoice_pdf(bundle)
    logger.info("PDF built: %s bytes", len(data))
    return data


def write_invoice_pdf(
    out_path: Union[str, Path],
    draft: InvoiceDraft,
    **kwargs,
) -> Path:
    """Render the draft and write it to out_path, creating parent dirs as needed."""
    p = Path(out_path)
    data = generate_invoice_pdf(draft, **kwargs)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data)
    logger.info("Wrote %s", p)
    return p
