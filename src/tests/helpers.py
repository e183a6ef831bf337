"""Shared test factories for mock DNS responses, RSA keys and DKIM records."""

import base64
from unittest.mock import MagicMock

from cryptography.hazmat.primitives.asymmetric import ed25519, rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from dkim_registry.models import DnsRecord, DnsResponse, DnsStatus


def dns_response(domain, txt_values=None, status=DnsStatus.NOERROR):
    """Build a DnsResponse with zero or more TXT records."""
    records = []
    if txt_values:
        records = [DnsRecord(record_type="TXT", value=v, ttl=3600) for v in txt_values]
    return DnsResponse(domain=domain, record_type="TXT", status=status, records=records)


def nxdomain(domain):
    """Return an NXDOMAIN response for a domain."""
    return dns_response(domain, status=DnsStatus.NXDOMAIN)


def mock_fetcher(mapping=None):
    """
    Build a mock DnsFetcher whose query_txt() returns responses from `mapping`.

    mapping: dict of name -> list[str] of TXT values, a DnsResponse, or an
    exception instance to raise. Unknown names return NXDOMAIN.
    """
    mapping = mapping or {}
    fetcher = MagicMock()

    def _query_txt(name):
        if name not in mapping:
            return nxdomain(name)
        val = mapping[name]
        if isinstance(val, Exception):
            raise val
        if isinstance(val, DnsResponse):
            return val
        return dns_response(name, val)

    fetcher.query_txt.side_effect = _query_txt
    return fetcher


# ── Keys ────────────────────────────────────────────────────────────────────────

_KEYS = {}


def rsa_key(bits=2048, index=0):
    """Cached RSA private key; `index` gives distinct keys of the same size."""
    if (bits, index) not in _KEYS:
        _KEYS[(bits, index)] = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    return _KEYS[(bits, index)]


def modulus_of(private_key):
    return private_key.public_key().public_numbers().n


def spki_b64(private_key):
    der = private_key.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    return base64.b64encode(der).decode("ascii")


def pkcs1_b64(private_key):
    der = private_key.public_key().public_bytes(Encoding.DER, PublicFormat.PKCS1)
    return base64.b64encode(der).decode("ascii")


def ed25519_b64():
    der = ed25519.Ed25519PrivateKey.generate().public_key().public_bytes(
        Encoding.DER, PublicFormat.SubjectPublicKeyInfo
    )
    return base64.b64encode(der).decode("ascii")


def dkim_record(b64_key, prefix="v=DKIM1; k=rsa; "):
    return f"{prefix}p={b64_key}"
