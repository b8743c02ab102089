"""Tests for the I18nService translation lookup and fallback."""

from __future__ import annotations

import json
from pathlib import Path

from shopbot.i18n import I18nService


def test_gettext_returns_translated_string(tmp_path: Path):
    locale_dir = tmp_path / "locales"
    locale_dir.mkdir()
    (locale_dir / "en.json").write_text('{"greet": "Hello {name}"}', encoding="utf-8")
    service = I18nService(locales_path=locale_dir, default_locale="en")

    assert service.gettext("greet", name="World") == "Hello World"


def test_gettext_falls_back_to_base_then_default(tmp_path: Path):
    locale_dir = tmp_path / "locales"
    locale_dir.mkdir()
    (locale_dir / "en.json").write_text('{"greet": "Hello", "bye": "Bye"}', encoding="utf-8")
    (locale_dir / "pt.json").write_text('{"greet": "Olá"}', encoding="utf-8")
    service = I18nService(locales_path=locale_dir, default_locale="en")

    assert service.gettext("greet", locale="pt_BR") == "Olá"
    assert service.gettext("bye", locale="pt-BR") == "Bye"
    assert service.gettext("greet", locale="es") == "Hello"
    assert service.gettext("missing.key") == "missing.key"


def test_bundled_catalogue_formats_every_placeholder():
    service = I18nService()
    catalogue_path = Path(service.locales_path) / "en.json"
    catalogue = json.loads(catalogue_path.read_text(encoding="utf-8"))

    assert "start.greeting" in catalogue
    caption = service.gettext(
        "proof.admin_caption", user_id="501", order_id=7, plan="Basic Monthly", amount="$42.00"
    )
    assert "/completeorder 501" in caption
    assert "Order ID: 7" in caption
