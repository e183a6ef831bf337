"""Custom exception hierarchy for dkim-registry."""


class DkimRegistryError(Exception):
    """Base exception for all dkim-registry errors."""


# ── Discovery Misses ───────────────────────────────────────────────────────────

class DiscoveryMiss(DkimRegistryError):
    """A (domain, selector) probe produced no usable key. Never fatal."""


class DnsError(DiscoveryMiss):
    """Base class for DNS-related errors."""


class DnsTimeoutError(DnsError):
    """DNS query timed out."""


class DnsNxdomainError(DnsError):
    """Domain or record does not exist."""


class DnsServfailError(DnsError):
    """DNS server returned SERVFAIL."""


class DnsAllResolversExhaustedError(DnsError):
    """All configured resolvers failed to answer."""


class InvalidDomainError(DiscoveryMiss):
    """The provided domain or query name is invalid."""


class KeyParseError(DiscoveryMiss):
    """The DKIM record does not carry a parseable RSA public key."""


# ── Per-key / per-domain failures ──────────────────────────────────────────────

class EncodingOverflow(DkimRegistryError):
    """The modulus does not fit in the requested chunk layout."""

    def __init__(self, bit_length: int, capacity_bits: int):
        super().__init__(
            f"modulus of {bit_length} bits exceeds layout capacity of {capacity_bits} bits"
        )
        self.bit_length = bit_length
        self.capacity_bits = capacity_bits


class PublicationFailure(DkimRegistryError):
    """Registry transaction was rejected, reverted, or not confirmed in time."""

    def __init__(self, domain: str, message: str, tx_hash: str = ""):
        super().__init__(f"{domain}: {message}")
        self.domain = domain
        self.tx_hash = tx_hash


# ── Startup ────────────────────────────────────────────────────────────────────

class ConfigurationError(DkimRegistryError):
    """Required settings are missing or invalid. Raised before any work starts."""
