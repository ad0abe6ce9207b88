from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

from atlas.core.invoices import InvoiceDraft
from atlas.core.paths import default_output_dir
from atlas.core.settings import Settings, load_settings, save_settings


def test_missing_file_writes_defaults(tmp_path: Path) -> None:
    p = tmp_path / "conf" / "settings.json"
    settings = load_settings(p)
    assert settings == Settings()
    assert json.loads(p.read_text(encoding="utf-8"))["template_id"] == "villa-coastal"


def test_round_trip(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    save_settings(Settings(business_name="Café Nord", locale="de-DE", currency="EUR", premium=True), p)
    loaded = load_settings(p)
    assert loaded.business_name == "Café Nord"
    assert loaded.locale == "de-DE"
    assert loaded.premium is True
    assert not p.with_suffix(".json.tmp").exists()


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"currency": "JPY", "legacy_flag": True}), encoding="utf-8")
    loaded = load_settings(p)
    assert loaded.currency == "JPY"
    assert loaded.tax_rate == Settings().tax_rate


def test_corrupt_file_falls_back_without_overwriting(tmp_path: Path, caplog) -> None:
    p = tmp_path / "settings.json"
    p.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="atlas.core.settings"):
        loaded = load_settings(p)
    assert loaded == Settings()
    assert p.read_text(encoding="utf-8") == "{not json"
    assert "using defaults" in caplog.text


def test_output_dir(tmp_path: Path) -> None:
    assert Settings().resolved_output_dir() == default_output_dir()
    assert Settings(output_dir=str(tmp_path)).resolved_output_dir() == tmp_path


def test_new_draft_uses_business_details_and_defaults() -> None:
    settings = Settings(
        business_name="Café Nord",
        business_address="Hafenstraße 1\nHamburg",
        currency="EUR",
        tax_rate=0.19,
        due_in_days=30,
        template_id="aqua-ledger",
    )
    draft = settings.new_draft(date(2026, 10, 18))
    assert draft.business_name == "Café Nord"
    assert draft.business_address == "Hafenstraße 1\nHamburg"
    assert draft.currency == "EUR"
    assert draft.tax_rate == 0.19
    assert draft.template_id == "aqua-ledger"
    assert draft.issue_date == "2026-10-18"
    assert draft.due_date == "2026-11-17"
    assert len(draft.lines) == 1


def test_render_options() -> None:
    settings = Settings(template_id="seikyu", locale="ja-JP", premium=True)
    assert settings.render_options() == {"template_id": "seikyu", "locale": "ja-JP", "premium": True}


def test_output_path_follows_file_name_template(tmp_path: Path) -> None:
    settings = Settings(output_dir=str(tmp_path), file_name_template="{status}-{client}")
    draft = InvoiceDraft(client_name="Acme (Pty) Ltd", issue_date="2026-10-18")
    assert settings.output_path(draft) == tmp_path / "draft-acme-pty-ltd.pdf"
    assert Settings(output_dir=str(tmp_path)).output_path(draft) == tmp_path / "acme-pty-ltd-2026-10-18.pdf"
