from __future__ import annotations

import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path

# Ensure project root is on sys.path when running this script directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from atlas.core.invoices import InvoiceDraft, LineItem
from atlas.core.settings import Settings, load_settings
from atlas.pdf.invoice_generator import write_invoice_pdf
from atlas.styles.templates import TEMPLATES, Tier

# Renders sample invoices from the settings file for README/demo purposes:
# one with the configured template, then one per template the plan allows.


def sample_draft(settings: Settings, today: date) -> InvoiceDraft:
    draft = settings.new_draft(today)
    return replace(
        draft,
        business_name=draft.business_name or "Northwind Studio",
        business_address=draft.business_address or "12 Harbour Road\nWellington 6011",
        client_name="Acme (Pty) Ltd",
        client_email="accounts@acme.example",
        client_address="1 Main Street\nCape Town",
        notes="Payment within %d days.\nBank: Example Bank, account 000-111-222." % settings.due_in_days,
        lines=(
            LineItem(id="1", description="Design sprint", quantity=2, rate=1200),
            LineItem(id="2", description="Prototype build", quantity=1, rate=850.5),
            LineItem(id="3", description="Workshop facilitation", quantity=1.5, rate=400),
        ),
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    draft = sample_draft(settings, date.today())

    out = write_invoice_pdf(settings.output_path(draft), draft, **settings.render_options())
    print(f"Wrote sample to: {out}")

    samples_dir = settings.resolved_output_dir() / "samples"
    for template in TEMPLATES.values():
        if template.tier is Tier.PREMIUM and not settings.premium:
            continue
        options = {**settings.render_options(), "template_id": template.id}
        out = write_invoice_pdf(samples_dir / template.id / settings.output_path(draft).name, draft, **options)
        print(f"Wrote sample to: {out}")


if __name__ == "__main__":
    main()
