from __future__ import annotations

from datetime import date

import pytest

from atlas.core.invoices import (
    InvoiceDraft,
    InvoiceStatus,
    LineItem,
    calculate_totals,
    clean_lines,
    create_empty_draft,
    describe_status,
    normalise_number,
    suggest_file_name,
)


def _lines() -> tuple[LineItem, ...]:
    return (
        LineItem(id="a", description="  Design  ", quantity=2, rate=150),
        LineItem(id="b", description="", quantity=3, rate=0),
        LineItem(id="c", description="", quantity=1, rate=25.5),
        LineItem(id="d", description="Bad numbers", quantity=float("nan"), rate=-4),
    )


def test_clean_lines_trims_filters_and_defaults() -> None:
    cleaned = clean_lines(_lines())
    assert [ln.id for ln in cleaned] == ["a", "c", "d"]
    assert cleaned[0].description == "Design"
    assert cleaned[2].quantity == 1.0
    assert cleaned[2].rate == 0.0


def test_clean_lines_is_idempotent() -> None:
    once = clean_lines(_lines())
    assert clean_lines(once) == once


def test_totals_add_up() -> None:
    totals = calculate_totals(clean_lines(_lines()), 0.15)
    assert totals.subtotal == pytest.approx(325.5)
    assert totals.tax_amount == pytest.approx(325.5 * 0.15)
    assert totals.total == pytest.approx(totals.subtotal + totals.tax_amount)


@pytest.mark.parametrize("tax_rate", [-0.2, float("nan"), float("inf"), "abc", None])
def test_bad_tax_rate_means_no_tax(tax_rate) -> None:
    totals = calculate_totals([LineItem(id="x", description="x", quantity=1, rate=100)], tax_rate)
    assert totals.tax_amount == 0.0
    assert totals.total == 100.0


def test_empty_lines_give_zero_totals() -> None:
    totals = calculate_totals((), 0.1)
    assert (totals.subtotal, totals.tax_amount, totals.total) == (0.0, 0.0, 0.0)


def test_normalise_number() -> None:
    assert normalise_number("2.5") == 2.5
    assert normalise_number(-1) == 0.0
    assert normalise_number(float("inf")) == 0.0
    assert normalise_number(object()) == 0.0


def test_draft_from_dict() -> None:
    draft = InvoiceDraft.from_dict({
        "client_name": "Acme",
        "status": "PAID",
        "unknown": "ignored",
        "lines": [{"description": "Work", "quantity": 2, "rate": 10}],
    })
    assert draft.client_name == "Acme"
    assert draft.status is InvoiceStatus.PAID
    assert len(draft.lines) == 1
    assert draft.lines[0].id


def test_unknown_status_falls_back_to_draft() -> None:
    draft = InvoiceDraft.from_dict({"status": "archived"})
    assert draft.status is InvoiceStatus.DRAFT
    assert describe_status(draft.status) == "Draft"


def test_create_empty_draft() -> None:
    draft = create_empty_draft(date(2026, 10, 18), currency="EUR", tax_rate=0.2, due_in_days=30)
    assert draft.issue_date == "2026-10-18"
    assert draft.due_date == "2026-11-17"
    assert draft.currency == "EUR"
    assert len(draft.lines) == 1
    assert draft.lines[0].description == ""


def test_suggest_file_name() -> None:
    draft = InvoiceDraft(client_name="Acme (Pty) Ltd", issue_date="2026-10-18")
    assert suggest_file_name(draft) == "acme-pty-ltd-2026-10-18.pdf"
    assert suggest_file_name(InvoiceDraft()) == "invoice-draft.pdf"
    assert suggest_file_name(draft, "{status}-{client}") == "draft-acme-pty-ltd.pdf"
