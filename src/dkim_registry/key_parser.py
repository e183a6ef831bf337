"""DKIM record tag parsing and RSA modulus extraction."""

import base64
import binascii
import re
import textwrap
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .exceptions import KeyParseError

PEM_LINE_LENGTH = 64
_WHITESPACE = re.compile(r"\s+")


def parse_tags(record: str) -> dict:
    """Split a DKIM tag-list ("v=DKIM1; k=rsa; p=...") into a dict. First occurrence wins."""
    tags: dict[str, str] = {}
    for part in record.split(";"):
        name, sep, value = part.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        tags.setdefault(name, value.strip())
    return tags


def extract_public_key_tag(record: str) -> Optional[str]:
    """Return the p= value with folding whitespace removed, or None if the tag is absent."""
    value = parse_tags(record).get("p")
    if value is None:
        return None
    return _WHITESPACE.sub("", value)


def frame_pem(b64_key: str, label: str = "PUBLIC KEY") -> bytes:
    body = "\n".join(textwrap.wrap(b64_key, PEM_LINE_LENGTH))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----\n".encode("ascii")


def modulus_from_pem(pem: bytes) -> int:
    """Load a PEM public key and return its RSA modulus. The exponent is discarded."""
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"Unparseable public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyParseError(f"Not an RSA key: {type(key).__name__}")
    modulus = key.public_numbers().n
    if modulus <= 0:
        raise KeyParseError("RSA modulus must be positive")
    return modulus


def modulus_from_public_key(b64_key: str) -> int:
    """Convert a base64 p= value into the RSA modulus.

    The value is already base64 DER, so it is only validated and re-framed as
    PEM. SubjectPublicKeyInfo is the RFC 6376 form; a bare PKCS#1 RSAPublicKey
    is accepted as a fallback since some publishers emit it.
    """
    if not b64_key:
        raise KeyParseError("Empty p= tag (revoked key)")
    try:
        base64.b64decode(b64_key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise KeyParseError(f"p= tag is not valid base64: {e}") from e

    try:
        return modulus_from_pem(frame_pem(b64_key))
    except KeyParseError as spki_error:
        try:
            return modulus_from_pem(frame_pem(b64_key, "RSA PUBLIC KEY"))
        except KeyParseError:
            raise spki_error from None


def modulus_from_record(record: str) -> int:
    """Full record -> modulus path. Raises KeyParseError on anything unusable."""
    tags = parse_tags(record)
    key_type = (tags.get("k") or "rsa").strip().lower()
    if key_type != "rsa":
        raise KeyParseError(f"Unsupported key type k={key_type}")
    b64_key = extract_public_key_tag(record)
    if b64_key is None:
        raise KeyParseError("No public key (p=) tag in DKIM record")
    return modulus_from_public_key(b64_key)
