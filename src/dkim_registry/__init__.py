"""Discover DKIM RSA keys in DNS and publish their Poseidon commitments to an on-chain registry."""

__version__ = "0.1.0"
