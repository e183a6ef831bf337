"""Unit tests for domain lists and selector catalogs."""

import pytest

from dkim_registry.domains import load_domains, parse_domains
from dkim_registry.exceptions import ConfigurationError
from dkim_registry.selector_catalog import DEFAULT_CATALOG, build_catalog, is_valid_selector, load_catalog


class TestDomainList:
    def test_one_domain_per_line(self):
        assert parse_domains(["example.com", "example.org"]) == ["example.com", "example.org"]

    def test_blank_lines_skipped(self):
        assert parse_domains(["", "example.com", "   ", ""]) == ["example.com"]

    def test_comments_skipped(self):
        assert parse_domains(["# header", "example.com  # primary"]) == ["example.com"]

    def test_normalised_and_deduplicated(self):
        assert parse_domains(["Example.COM.", "example.com", "b.com"]) == ["example.com", "b.com"]

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "domains.txt"
        path.write_text("example.com\n\nexample.org\n", encoding="utf-8")
        assert load_domains(path) == ["example.com", "example.org"]


class TestSelectorCatalog:
    def test_default_catalog_is_versioned(self):
        assert DEFAULT_CATALOG.version

    def test_default_catalog_has_no_duplicates(self):
        assert len(set(DEFAULT_CATALOG)) == len(DEFAULT_CATALOG)

    def test_default_catalog_entries_are_valid_labels(self):
        assert all(is_valid_selector(s) for s in DEFAULT_CATALOG)

    def test_default_catalog_includes_common_vendors(self):
        for selector in ("google", "selector1", "selector2", "k1", "smtpapi"):
            assert selector in DEFAULT_CATALOG.selectors

    def test_build_catalog_dedups_keeping_order(self):
        catalog = build_catalog("t", ["b", "a", "B", "c"])
        assert catalog.selectors == ("b", "a", "c")

    def test_invalid_selector_rejected(self):
        with pytest.raises(ConfigurationError, match="bad selector"):
            build_catalog("t", ["good", "bad selector"])

    def test_empty_catalog_rejected(self):
        with pytest.raises(ConfigurationError, match="empty"):
            build_catalog("t", ["", "  "])

    @pytest.mark.parametrize("selector", ["google", "20230601", "s1024", "mail.sub", "key_1"])
    def test_valid_selectors(self, selector):
        assert is_valid_selector(selector)

    @pytest.mark.parametrize("selector", ["", "-lead", "trail-", "a..b", "has space"])
    def test_invalid_selectors(self, selector):
        assert not is_valid_selector(selector)

    def test_load_wordlist(self, tmp_path):
        path = tmp_path / "dkim.lst"
        path.write_text("# vendor list\ngoogle\n\nselector1  # microsoft\n", encoding="utf-8")
        catalog = load_catalog(path)
        assert catalog.selectors == ("google", "selector1")
        assert catalog.version == "file:dkim.lst"

    def test_missing_wordlist_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_catalog(tmp_path / "missing.lst")
