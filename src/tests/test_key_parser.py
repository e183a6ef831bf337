"""Unit tests for DKIM tag parsing and RSA modulus extraction."""

import pytest

from dkim_registry.exceptions import DiscoveryMiss, KeyParseError
from dkim_registry.key_parser import (
    extract_public_key_tag,
    frame_pem,
    modulus_from_pem,
    modulus_from_public_key,
    modulus_from_record,
    parse_tags,
)

from .helpers import dkim_record, ed25519_b64, modulus_of, pkcs1_b64, rsa_key, spki_b64


class TestParseTags:
    def test_splits_tag_list(self):
        tags = parse_tags("v=DKIM1; k=rsa; p=ABC")
        assert tags == {"v": "DKIM1", "k": "rsa", "p": "ABC"}

    def test_value_keeps_base64_padding(self):
        assert parse_tags("p=QUJD==")["p"] == "QUJD=="

    def test_first_occurrence_wins(self):
        assert parse_tags("p=first; p=second")["p"] == "first"

    def test_ignores_fragments_without_equals(self):
        assert parse_tags("v=DKIM1; garbage; ;")["v"] == "DKIM1"

    def test_tag_names_are_not_substring_matched(self):
        # "hp=" must not be read as a p= tag
        assert extract_public_key_tag("v=DKIM1; hp=XYZ") is None


class TestExtractPublicKeyTag:
    def test_returns_value_up_to_semicolon(self):
        assert extract_public_key_tag("v=DKIM1; p=QUJD; t=y") == "QUJD"

    def test_returns_value_at_end_of_string(self):
        assert extract_public_key_tag("v=DKIM1; p=QUJD") == "QUJD"

    def test_strips_folding_whitespace(self):
        assert extract_public_key_tag("v=DKIM1; p=QU JD\n  RU") == "QUJDRU"

    def test_missing_tag_is_none(self):
        assert extract_public_key_tag("v=DKIM1; k=rsa") is None

    def test_empty_tag_is_empty_string(self):
        assert extract_public_key_tag("v=DKIM1; k=rsa; p=") == ""


class TestModulusFromPublicKey:
    def test_spki_key_returns_modulus(self):
        key = rsa_key()
        assert modulus_from_public_key(spki_b64(key)) == modulus_of(key)

    def test_pkcs1_key_returns_modulus(self):
        key = rsa_key()
        assert modulus_from_public_key(pkcs1_b64(key)) == modulus_of(key)

    def test_modulus_is_positive_2048_bit(self):
        modulus = modulus_from_public_key(spki_b64(rsa_key()))
        assert modulus > 0
        assert modulus.bit_length() == 2048

    def test_empty_value_is_revoked(self):
        with pytest.raises(KeyParseError, match="revoked"):
            modulus_from_public_key("")

    def test_invalid_base64_rejected(self):
        with pytest.raises(KeyParseError):
            modulus_from_public_key("not*base64!")

    def test_valid_base64_but_not_a_key_rejected(self):
        with pytest.raises(KeyParseError):
            modulus_from_public_key("QUJDREVGR0g=")

    def test_ed25519_key_rejected(self):
        with pytest.raises(KeyParseError, match="Not an RSA key"):
            modulus_from_public_key(ed25519_b64())

    def test_parse_errors_are_discovery_misses(self):
        with pytest.raises(DiscoveryMiss):
            modulus_from_public_key("QUJD")


class TestPemFraming:
    def test_lines_are_64_characters(self):
        pem = frame_pem("A" * 150).decode()
        body = pem.splitlines()[1:-1]
        assert [len(line) for line in body] == [64, 64, 22]

    def test_header_and_footer(self):
        pem = frame_pem("QUJD").decode()
        assert pem.startswith("-----BEGIN PUBLIC KEY-----\n")
        assert pem.rstrip().endswith("-----END PUBLIC KEY-----")

    def test_round_trip_through_pem(self):
        key = rsa_key()
        assert modulus_from_pem(frame_pem(spki_b64(key))) == modulus_of(key)


class TestModulusFromRecord:
    def test_full_record(self):
        key = rsa_key()
        assert modulus_from_record(dkim_record(spki_b64(key))) == modulus_of(key)

    def test_record_without_k_tag_defaults_to_rsa(self):
        key = rsa_key()
        assert modulus_from_record(dkim_record(spki_b64(key), prefix="v=DKIM1; ")) == modulus_of(key)

    def test_non_rsa_key_type_rejected(self):
        with pytest.raises(KeyParseError, match="k=ed25519"):
            modulus_from_record(f"v=DKIM1; k=ed25519; p={ed25519_b64()}")

    def test_missing_p_tag_rejected(self):
        with pytest.raises(KeyParseError, match="No public key"):
            modulus_from_record("v=DKIM1; k=rsa")

    def test_revoked_record_rejected(self):
        with pytest.raises(KeyParseError):
            modulus_from_record("v=DKIM1; k=rsa; p=")
