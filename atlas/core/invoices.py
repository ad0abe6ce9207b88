from __future__ import annotations

import math
import re
import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from atlas.styles.templates import DEFAULT_TEMPLATE_ID


class InvoiceStatus(str, Enum):
	DRAFT = "draft"
	SENT = "sent"
	PAID = "paid"
	OVERDUE = "overdue"


_STATUS_NAMES = {
	InvoiceStatus.DRAFT: "Draft",
	InvoiceStatus.SENT: "Sent",
	InvoiceStatus.PAID: "Paid",
	InvoiceStatus.OVERDUE: "Overdue",
}


@dataclass(frozen=True)
class LineItem:
	id: str
	description: str = ""
	quantity: float = 1.0
	rate: float = 0.0

	@property
	def amount(self) -> float:
		return normalise_number(self.quantity) * normalise_number(self.rate)


@dataclass(frozen=True)
class InvoiceDraft:
	business_name: str = ""
	business_address: str = ""
	client_name: str = ""
	client_email: str = ""
	client_address: str = ""
	# ISO dates ("2026-10-18"); date objects are accepted too
	issue_date: Any = ""
	due_date: Any = ""
	currency: str = "USD"
	status: InvoiceStatus = InvoiceStatus.DRAFT
	tax_rate: float = 0.0
	notes: str = ""
	lines: Tuple[LineItem, ...] = ()
	template_id: str = DEFAULT_TEMPLATE_ID

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "InvoiceDraft":
		"""Build a draft from a plain dict; unknown keys are ignored, lines may be dicts."""
		lines = tuple(
			ln if isinstance(ln, LineItem) else LineItem(
				id=str(ln.get("id") or uuid.uuid4().hex),
				description=str(ln.get("description") or ""),
				quantity=ln.get("quantity", 1),
				rate=ln.get("rate", 0),
			)
			for ln in data.get("lines", []) or []
		)
		known = set(cls.__dataclass_fields__) - {"lines", "status"}
		fields = {k: v for k, v in data.items() if k in known}
		return cls(status=coerce_status(data.get("status")), lines=lines, **fields)


@dataclass(frozen=True)
class Totals:
	subtotal: float
	tax_amount: float
	total: float


def coerce_status(value: Any) -> InvoiceStatus:
	if isinstance(value, InvoiceStatus):
		return value
	try:
		return InvoiceStatus(str(value or "draft").lower())
	except ValueError:
		return InvoiceStatus.DRAFT


def describe_status(status: InvoiceStatus) -> str:
	return _STATUS_NAMES.get(coerce_status(status), str(status))


def normalise_number(value: Any) -> float:
	"""Finite, non-negative float; anything else becomes 0."""
	try:
		v = float(value)
	except (TypeError, ValueError):
		return 0.0
	if not math.isfinite(v):
		return 0.0
	return max(0.0, v)


def safe_quantity(value: Any) -> float:
	try:
		v = float(value)
	except (TypeError, ValueError):
		return 1.0
	return v if math.isfinite(v) and v > 0 else 1.0


def safe_rate(value: Any) -> float:
	try:
		v = float(value)
	except (TypeError, ValueError):
		return 0.0
	return v if math.isfinite(v) and v >= 0 else 0.0


def clean_lines(lines: Iterable[LineItem]) -> Tuple[LineItem, ...]:
	"""Trim descriptions, default bad numbers and drop lines with no description and no rate.

	Idempotent: cleaning an already-clean tuple returns an equal tuple.
	"""
	cleaned = (
		replace(
			line,
			description=(line.description or "").strip(),
			quantity=safe_quantity(line.quantity),
			rate=safe_rate(line.rate),
		)
		for line in lines
	)
	return tuple(line for line in cleaned if line.description or line.rate > 0)


def calculate_totals(lines: Iterable[LineItem], tax_rate: float) -> Totals:
	subtotal = sum((line.amount for line in lines), 0.0)
	tax_amount = subtotal * normalise_number(tax_rate)
	return Totals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def create_empty_line() -> LineItem:
	return LineItem(id=uuid.uuid4().hex, description="", quantity=1.0, rate=0.0)


def create_empty_draft(
	today: Optional[date] = None,
	currency: str = "USD",
	tax_rate: float = 0.07,
	due_in_days: int = 14,
	template_id: str = DEFAULT_TEMPLATE_ID,
) -> InvoiceDraft:
	issued = today or date.today()
	return InvoiceDraft(
		issue_date=issued.isoformat(),
		due_date=(issued + timedelta(days=due_in_days)).isoformat(),
		currency=currency,
		status=InvoiceStatus.DRAFT,
		tax_rate=tax_rate,
		lines=(create_empty_line(),),
		template_id=template_id,
	)


def _slug(value: str) -> str:
	return re.sub(r"[^a-z0-9]+", "-", (value or "").strip().lower()).strip("-")


def suggest_file_name(draft: InvoiceDraft, pattern: str = "{client}-{issued}") -> str:
	"""Download name such as 'acme-pty-ltd-2026-10-18.pdf'."""
	issued = draft.issue_date.isoformat() if isinstance(draft.issue_date, date) else str(draft.issue_date or "")
	name = pattern.format(
		client=_slug(draft.client_name) or "invoice",
		issued=issued.strip() or "draft",
		status=coerce_status(draft.status).value,
	)
	return f"{name}.pdf"
