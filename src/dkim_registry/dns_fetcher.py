"""DNS TXT query engine: bounded timeouts, resolver fallback, in-memory TTL cache, rate limiting."""

import re
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import dns.exception
import dns.rdatatype
import dns.resolver

from .exceptions import (
    DnsAllResolversExhaustedError,
    DnsNxdomainError,
    DnsServfailError,
    DnsTimeoutError,
    InvalidDomainError,
)
from .models import DnsRecord, DnsResponse, DnsStatus


# ── Rate Limiter ───────────────────────────────────────────────────────────────

class RateLimiter:
    """Token bucket rate limiter. Thread-safe."""

    def __init__(self, rate: float = 50.0):
        self._rate = rate          # tokens per second
        self._tokens = rate
        self._last_check = time.monotonic()
        self._lock = threading.Lock()

    def acquire(self) -> None:
        """Block until a token is available.

        The token is reserved under the lock; the wait for it happens outside,
        so concurrent callers sleep in parallel rather than queueing.
        """
        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_check
            self._last_check = now
            self._tokens = min(self._rate, self._tokens + elapsed * self._rate)
            # Tokens may go negative: each caller reserves a slot further out.
            self._tokens -= 1.0
            wait = -self._tokens / self._rate if self._tokens < 0 else 0.0
        if wait > 0:
            time.sleep(wait)


# ── DNS Cache ──────────────────────────────────────────────────────────────────

class DnsCache:
    """In-memory cache with TTL enforcement, keyed by record type and name."""

    MAX_ENTRIES = 10_000
    MIN_TTL = 60
    MAX_TTL = 3_600
    NXDOMAIN_TTL = 300

    def __init__(self):
        self._store: dict[str, tuple[DnsResponse, datetime]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _make_key(name: str, record_type: str) -> str:
        return f"{record_type.upper()}:{name.lower().rstrip('.')}"

    def get(self, name: str, record_type: str) -> Optional[DnsResponse]:
        key = self._make_key(name, record_type)
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            response, expires_at = entry
            if datetime.now(timezone.utc) > expires_at:
                del self._store[key]
                return None
            response.cache_hit = True
            return response

    def put(self, name: str, record_type: str, response: DnsResponse) -> None:
        key = self._make_key(name, record_type)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self._effective_ttl(response))
        with self._lock:
            if len(self._store) >= self.MAX_ENTRIES:
                self._evict_expired()
            self._store[key] = (response, expires_at)

    def _effective_ttl(self, response: DnsResponse) -> int:
        if response.status == DnsStatus.NXDOMAIN:
            return self.NXDOMAIN_TTL
        if not response.records:
            return self.MIN_TTL
        raw_ttl = min(r.ttl for r in response.records)
        return max(self.MIN_TTL, min(self.MAX_TTL, raw_ttl))

    def flush(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _evict_expired(self) -> None:
        now = datetime.now(timezone.utc)
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        for k in expired:
            del self._store[k]


# ── DNS Fetcher ────────────────────────────────────────────────────────────────

# Selector labels may start with a digit or underscore (e.g. "20230601", "_domainkey").
_NAME_PATTERN = re.compile(
    r"^(?:[a-zA-Z0-9_](?:[a-zA-Z0-9_\-]{0,61}[a-zA-Z0-9_])?\.)+"
    r"(?:[a-zA-Z]{2,63}|xn--[a-zA-Z0-9\-]{1,59})$"
)

SYSTEM_RESOLVER = "system"
TIMEOUT = 5.0
MAX_RETRIES = 2


class DnsFetcher:
    def __init__(
        self,
        cache: Optional[DnsCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = TIMEOUT,
        max_retries: int = MAX_RETRIES,
        nameservers: Optional[Sequence[str]] = None,
        resolver: Optional[dns.resolver.Resolver] = None,
    ):
        self._cache = cache or DnsCache()
        self._rate_limiter = rate_limiter or RateLimiter(rate=50.0)
        self._max_retries = max(1, max_retries)
        if resolver is not None:
            self._resolvers = [(SYSTEM_RESOLVER, resolver)]
        elif nameservers:
            self._resolvers = [(ip, self._build_resolver(timeout, [ip])) for ip in nameservers]
        else:
            self._resolvers = [(SYSTEM_RESOLVER, self._build_resolver(timeout))]

    @staticmethod
    def _build_resolver(timeout: float, nameservers: Optional[list] = None) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver(configure=nameservers is None)
        if nameservers is not None:
            resolver.nameservers = nameservers
        resolver.timeout = timeout
        resolver.lifetime = timeout
        return resolver

    def query(self, name: str, record_type: str) -> DnsResponse:
        """Cache-first, then tries each resolver in order with bounded retries on timeout."""
        name = self._validate_name(name)

        cached = self._cache.get(name, record_type)
        if cached:
            return cached

        last_error: Optional[Exception] = None
        for label, resolver in self._resolvers:
            for attempt in range(self._max_retries):
                try:
                    self._rate_limiter.acquire()
                    response = self._query_resolver(label, resolver, name, record_type)
                    self._cache.put(name, record_type, response)
                    return response
                except DnsNxdomainError:
                    # NXDOMAIN is definitive
                    response = DnsResponse(
                        domain=name,
                        record_type=record_type,
                        status=DnsStatus.NXDOMAIN,
                        resolver_used=label,
                    )
                    self._cache.put(name, record_type, response)
                    return response
                except DnsTimeoutError as e:
                    last_error = e
                    if attempt < self._max_retries - 1:
                        continue
                    break
                except DnsServfailError as e:
                    last_error = e
                    break

        raise DnsAllResolversExhaustedError(
            f"All DNS resolvers failed for {record_type} {name}: {last_error}"
        )

    def _validate_name(self, name: str) -> str:
        name = name.lower().strip().rstrip(".")
        if len(name) > 253:
            raise InvalidDomainError(f"Name too long: {name}")
        if not _NAME_PATTERN.match(name):
            raise InvalidDomainError(f"Invalid DNS name: {name}")
        return name

    def _query_resolver(self, label: str, resolver, name: str, record_type: str) -> DnsResponse:
        start = time.monotonic()
        try:
            answer = resolver.resolve(name, dns.rdatatype.from_text(record_type))
        except dns.resolver.NXDOMAIN:
            raise DnsNxdomainError(f"NXDOMAIN: {name}")
        except dns.resolver.NoAnswer:
            # Name exists but holds no record of this type
            return DnsResponse(
                domain=name,
                record_type=record_type,
                status=DnsStatus.NOERROR,
                records=[],
                resolver_used=label,
                response_time_ms=(time.monotonic() - start) * 1000,
            )
        except (dns.exception.Timeout, dns.resolver.LifetimeTimeout):
            raise DnsTimeoutError(f"Timeout querying {label} for {record_type} {name}")
        except dns.resolver.NoNameservers:
            raise DnsServfailError(f"No nameservers answered for {name}")
        except dns.exception.DNSException as e:
            raise DnsServfailError(f"DNS error from {label}: {e}")

        return DnsResponse(
            domain=name,
            record_type=record_type,
            status=DnsStatus.NOERROR,
            records=self._parse_records(answer, record_type),
            resolver_used=label,
            response_time_ms=(time.monotonic() - start) * 1000,
        )

    def _parse_records(self, answer, record_type: str) -> list:
        ttl = answer.rrset.ttl if answer.rrset is not None else DnsCache.MIN_TTL
        records = []
        for rdata in answer:
            if record_type == "TXT":
                # A TXT rdata may be split into several character-strings; order is significant
                value = b"".join(rdata.strings).decode("ascii", errors="replace")
            else:
                value = str(rdata)
            records.append(DnsRecord(record_type=record_type, value=value, ttl=ttl))
        return records

    def query_txt(self, name: str) -> DnsResponse:
        return self.query(name, "TXT")


def create_fetcher(
    timeout: float = TIMEOUT,
    rate: float = 50.0,
    nameservers: Optional[Sequence[str]] = None,
) -> DnsFetcher:
    """Module-level factory for CLI use."""
    return DnsFetcher(
        cache=DnsCache(),
        rate_limiter=RateLimiter(rate=rate),
        timeout=timeout,
        nameservers=nameservers,
    )
