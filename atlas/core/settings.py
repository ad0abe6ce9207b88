from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import logging

from atlas.core.invoices import InvoiceDraft, create_empty_draft, suggest_file_name
from atlas.core.paths import settings_path, default_output_dir

# Path to the settings.json (runtime-aware)
SETTINGS_PATH = settings_path()

logger = logging.getLogger(__name__)


@dataclass
class Settings:
	business_name: str = ""
	business_address: str = ""
	# BCP 47 tag, e.g. "en-US" or "ja-JP"
	locale: str = "en-US"
	currency: str = "USD"
	template_id: str = "villa-coastal"
	# Free-plan callers are limited to free templates
	premium: bool = False
	tax_rate: float = 0.07
	due_in_days: int = 14
	# Optional root directory for saving PDFs; if None, defaults to Documents/Invoice Atlas
	output_dir: Optional[str] = None
	# Template supports {client}, {issued}, {status}
	file_name_template: str = "{client}-{issued}"

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Settings":
		# Merge provided values over defaults, ignore unknown keys
		defaults = asdict(cls())
		merged: Dict[str, Any] = {**defaults, **{k: v for k, v in data.items() if k in defaults}}
		return cls(**merged)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)

	def resolved_output_dir(self) -> Path:
		return Path(self.output_dir) if self.output_dir else default_output_dir()

	def new_draft(self, today: Optional[date] = None) -> InvoiceDraft:
		"""Blank draft carrying the business details and invoice defaults."""
		draft = create_empty_draft(
			today,
			currency=self.currency,
			tax_rate=self.tax_rate,
			due_in_days=self.due_in_days,
			template_id=self.template_id,
		)
		return replace(draft, business_name=self.business_name, business_address=self.business_address)

	def render_options(self) -> Dict[str, Any]:
		# Keyword arguments for generate_invoice_pdf / write_invoice_pdf
		return {"template_id": self.template_id, "locale": self.locale, "premium": self.premium}

	def output_path(self, draft: InvoiceDraft) -> Path:
		return self.resolved_output_dir() / suggest_file_name(draft, self.file_name_template)


def _coerce_path(path: Optional[Union[str, Path]]) -> Path:
	return Path(path) if path is not None else SETTINGS_PATH


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
	"""
	Load settings from JSON (UTF-8). If the file is missing, write defaults and return them.
	"""
	p = _coerce_path(path)
	if not p.exists():
		settings = Settings()
		save_settings(settings, p)
		return settings

	try:
		with p.open("r", encoding="utf-8") as f:
			raw: Dict[str, Any] = json.load(f)
	except (json.JSONDecodeError, OSError) as e:
		# Corrupt file is left untouched for the user to inspect
		logger.warning("Could not read settings %s (%s); using defaults", p, e)
		return Settings()

	return Settings.from_dict(raw if isinstance(raw, dict) else {})


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> None:
	"""Save settings to JSON (UTF-8), creating parent dirs if needed."""
	p = _coerce_path(path)
	p.parent.mkdir(parents=True, exist_ok=True)
	# Pretty JSON, keep Unicode
	tmp = p.with_suffix(p.suffix + ".tmp")
	with tmp.open("w", encoding="utf-8", newline="\n") as f:
		json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
		f.write("\n")
	tmp.replace(p)
