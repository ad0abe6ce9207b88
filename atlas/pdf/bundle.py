from __future__ import annotations

from dataclasses import dataclass

from atlas.core.currency import DEFAULT_LOCALE
from atlas.core.invoices import InvoiceDraft, Totals
from atlas.pdf.labels import LabelBundle
from atlas.styles.templates import Template


@dataclass(frozen=True)
class RenderBundle:
    """Everything one render needs. Built fresh per request and discarded afterwards."""

    draft: InvoiceDraft
    totals: Totals
    template: Template
    labels: LabelBundle = LabelBundle()
    locale: str = DEFAULT_LOCALE
    currency: str = "USD"
