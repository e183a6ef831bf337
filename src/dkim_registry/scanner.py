"""Brute-force DKIM selector discovery across a list of domains.

Every selector in the catalog is probed for each domain on a bounded thread
pool. A domain's probes all complete before its results are folded into the
output, so a domain is either fully aggregated or absent.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from .prober import SelectorProber
from .selector_catalog import DEFAULT_CATALOG, SelectorCatalog

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 32


class DomainScanner:
    def __init__(self, prober: SelectorProber, max_workers: int = DEFAULT_MAX_WORKERS):
        self._prober = prober
        self._max_workers = max_workers
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop after the domain batch currently in flight."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def scan(
        self,
        domains: Iterable[str],
        catalog: Optional[SelectorCatalog] = None,
    ) -> dict[str, list[int]]:
        """Map each domain to its distinct moduli, in discovery order. Domains without keys are omitted."""
        catalog = catalog or DEFAULT_CATALOG
        results: dict[str, list[int]] = {}

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="dkim-probe") as pool:
            for domain in domains:
                if self._cancelled.is_set():
                    logger.warning("Scan cancelled before %s", domain)
                    break
                moduli = self._scan_domain(pool, domain, catalog)
                if moduli:
                    results[domain] = moduli
        return results

    def scan_domain(self, domain: str, catalog: Optional[SelectorCatalog] = None) -> list[int]:
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="dkim-probe") as pool:
            return self._scan_domain(pool, domain, catalog or DEFAULT_CATALOG)

    def _scan_domain(self, pool: ThreadPoolExecutor, domain: str, catalog: SelectorCatalog) -> list[int]:
        futures = [(selector, pool.submit(self._prober.probe, domain, selector)) for selector in catalog]

        # Local accumulation; nothing is shared with other domains until the batch is done
        moduli: list[int] = []
        seen: set[int] = set()
        for selector, future in futures:
            modulus = future.result()
            if modulus is None:
                continue
            logger.info("Domain: %s, Selector: %s - match found", domain, selector)
            if modulus not in seen:
                seen.add(modulus)
                moduli.append(modulus)

        logger.debug("%s: %d distinct key(s) from %d selectors", domain, len(moduli), len(catalog))
        return moduli
