from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Optional, Union

from babel import Locale, UnknownLocaleError
from babel.dates import format_date
from babel.numbers import UnknownCurrencyError, validate_currency
from babel.numbers import format_currency as _babel_format_currency

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"
# Shown wherever a date or text value is missing
EMPTY_PLACEHOLDER = "—"


def safe_amount(value: object, default: float = 0.0) -> float:
	"""Return value as a finite float; NaN, infinities and non-numbers become default."""
	try:
		v = float(value)  # type: ignore[arg-type]
	except (TypeError, ValueError):
		return default
	return v if math.isfinite(v) else default


def parse_locale(tag: Optional[str]) -> Locale:
	"""Parse a BCP 47 tag ("en-US") or POSIX name ("en_US") into a Babel Locale."""
	return Locale.parse((tag or DEFAULT_LOCALE).strip().replace("-", "_"))


def plain_currency(value: float, currency: str) -> str:
	"""Locale-free "<CODE> <amount>" form, e.g. "EUR 12.50"."""
	code = (currency or "").strip().upper()
	return f"{code} {safe_amount(value):.2f}"


def format_currency(value: float, currency: str, locale: Optional[str] = DEFAULT_LOCALE) -> str:
	"""
	Format an amount for the given ISO 4217 code and locale.

	Unknown currency codes or locales never raise: the result falls back to
	"<CODE> <amount with two decimals>".
	"""
	amount = safe_amount(value)
	code = (currency or "").strip()
	try:
		validate_currency(code.upper())
		return _babel_format_currency(amount, code.upper(), locale=parse_locale(locale))
	except (UnknownCurrencyError, UnknownLocaleError, ValueError, TypeError):
		logger.debug("Currency formatting failed for %r/%r; using fallback", code, locale)
		return plain_currency(amount, code)


def is_supported_currency(currency: str) -> bool:
	try:
		validate_currency((currency or "").strip().upper())
	except UnknownCurrencyError:
		return False
	return bool(currency)


def format_quantity(qty: float) -> str:
	"""Format quantity with two decimals, dropping a trailing '.00'."""
	s = f"{safe_amount(qty, 1.0):.2f}"
	return s[:-3] if s.endswith(".00") else s


def _coerce_date(value: Union[str, date]) -> Optional[date]:
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value
	text = str(value).strip()
	try:
		return date.fromisoformat(text)
	except ValueError:
		pass
	try:
		return datetime.fromisoformat(text).date()
	except ValueError:
		return None


def format_friendly_date(value: Optional[Union[str, date]], locale: Optional[str] = DEFAULT_LOCALE) -> str:
	"""Medium-length localised date ("Oct 18, 2026"); em dash when empty, raw text when unparsable."""
	if not value:
		return EMPTY_PLACEHOLDER
	parsed = _coerce_date(value)
	if parsed is None:
		return str(value)
	try:
		return format_date(parsed, format="medium", locale=parse_locale(locale))
	except (UnknownLocaleError, ValueError):
		return parsed.isoformat()
