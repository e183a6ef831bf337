"""Discovery -> encoding -> commitment -> publication orchestration."""

import logging
from typing import Iterable, Optional

from .encoding import BYTE_PACKING_LAYOUT, encode
from .exceptions import EncodingOverflow, PublicationFailure
from .hasher import CommitmentHasher
from .models import EncodingFailure, PipelineResult, PublicationResult, PublicationStatus
from .publisher import RegistryPublisher
from .scanner import DomainScanner
from .selector_catalog import SelectorCatalog

logger = logging.getLogger(__name__)


class RegistryUpdater:
    def __init__(
        self,
        scanner: DomainScanner,
        hasher: CommitmentHasher,
        publisher: Optional[RegistryPublisher] = None,
        catalog: Optional[SelectorCatalog] = None,
    ):
        self._scanner = scanner
        self._hasher = hasher
        self._publisher = publisher
        self._catalog = catalog

    def run(self, domains: Iterable[str], publish: bool = True) -> PipelineResult:
        domains = list(domains)
        result = PipelineResult(domains=domains)

        result.keys = self._scanner.scan(domains, self._catalog)
        logger.info(
            "Discovered %d key(s) for %d of %d domain(s)",
            result.key_count, len(result.keys), len(domains),
        )

        self.derive(result)

        if publish:
            if self._publisher is None:
                raise ValueError("publish=True requires a RegistryPublisher")
            self.publish(result)
        return result

    def derive(self, result: PipelineResult) -> None:
        """Fill chunked encodings and commitments. An oversized key is skipped, not truncated."""
        for domain, moduli in result.keys.items():
            for modulus in moduli:
                try:
                    chunked = encode(modulus, BYTE_PACKING_LAYOUT)
                    commitment = self._hasher.hash(encode(modulus, self._hasher.layout))
                except EncodingOverflow as e:
                    logger.error("%s: skipping %d-bit key: %s", domain, modulus.bit_length(), e)
                    result.encoding_failures.append(
                        EncodingFailure(domain=domain, modulus=modulus, reason=str(e))
                    )
                    continue
                result.chunked.setdefault(domain, []).append(chunked)
                result.commitments.setdefault(domain, []).append(commitment)

    def publish(self, result: PipelineResult) -> None:
        """Publish sequentially; one domain's failure does not stop the others."""
        for domain, commitments in result.commitments.items():
            try:
                publication = self._publisher.publish(domain, commitments)
            except PublicationFailure as e:
                logger.error("Publication failed for %s: %s", domain, e)
                publication = PublicationResult(
                    domain=domain,
                    status=PublicationStatus.FAILED,
                    commitments=list(commitments),
                    tx_hash=e.tx_hash or None,
                    error=str(e),
                )
            result.publications.append(publication)
