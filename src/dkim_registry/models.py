"""Shared data contracts between all dkim-registry modules. Zero logic here."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ── Enums ──────────────────────────────────────────────────────────────────────

class DnsStatus(Enum):
    NOERROR = "NOERROR"
    NXDOMAIN = "NXDOMAIN"


class PublicationStatus(Enum):
    PUBLISHED = "published"
    NOOP = "noop"
    FAILED = "failed"


# ── DNS Layer ──────────────────────────────────────────────────────────────────

@dataclass
class DnsRecord:
    record_type: str
    value: str
    ttl: int


@dataclass
class DnsResponse:
    domain: str
    record_type: str
    status: DnsStatus
    records: list = field(default_factory=list)  # list[DnsRecord]
    resolver_used: str = ""
    response_time_ms: float = 0.0
    cache_hit: bool = False


# ── Encoding Layer ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ChunkLayout:
    chunk_bits: int
    chunk_count: int

    @property
    def capacity_bits(self) -> int:
        return self.chunk_bits * self.chunk_count


@dataclass(frozen=True)
class ChunkedEncoding:
    layout: ChunkLayout
    limbs: tuple  # tuple[int, ...], little-endian


@dataclass
class EncodingFailure:
    domain: str
    modulus: int
    reason: str


# ── Publication Layer ──────────────────────────────────────────────────────────

@dataclass
class PublicationResult:
    domain: str
    status: PublicationStatus
    commitments: list = field(default_factory=list)  # list[int]
    tx_hash: Optional[str] = None
    error: Optional[str] = None


# ── Pipeline ───────────────────────────────────────────────────────────────────

@dataclass
class PipelineResult:
    domains: list                                        # list[str], as scanned
    keys: dict = field(default_factory=dict)             # domain -> list[int]
    chunked: dict = field(default_factory=dict)          # domain -> list[ChunkedEncoding]
    commitments: dict = field(default_factory=dict)      # domain -> list[int]
    encoding_failures: list = field(default_factory=list)  # list[EncodingFailure]
    publications: list = field(default_factory=list)     # list[PublicationResult]

    @property
    def key_count(self) -> int:
        return sum(len(v) for v in self.keys.values())

    @property
    def commitment_count(self) -> int:
        return sum(len(v) for v in self.commitments.values())

    def publications_with(self, status: PublicationStatus) -> list:
        return [p for p in self.publications if p.status == status]
