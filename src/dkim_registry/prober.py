"""Single (domain, selector) DKIM key probe. Every failure maps to "no result"."""

import logging
from typing import Optional

from .dns_fetcher import DnsFetcher
from .exceptions import DiscoveryMiss
from .key_parser import modulus_from_record
from .models import DnsStatus

logger = logging.getLogger(__name__)


def build_dkim_name(selector: str, domain: str) -> str:
    return f"{selector}._domainkey.{domain}"


class SelectorProber:
    def __init__(self, fetcher: DnsFetcher):
        self._fetcher = fetcher

    def probe(self, domain: str, selector: str) -> Optional[int]:
        """Return the RSA modulus published at <selector>._domainkey.<domain>, or None."""
        name = build_dkim_name(selector, domain)
        try:
            return self._probe(name)
        except DiscoveryMiss as e:
            logger.debug("%s: %s", name, e)
        except Exception as e:  # noqa: BLE001
            logger.warning("%s: unexpected probe failure: %s", name, e)
        return None

    def _probe(self, name: str) -> Optional[int]:
        response = self._fetcher.query_txt(name)
        if response.status == DnsStatus.NXDOMAIN or not response.records:
            logger.debug("%s: no TXT record", name)
            return None
        # Only the first TXT record is considered
        return modulus_from_record(response.records[0].value)
