"""Versioned DKIM selector catalogs.

Discovery is a best-effort heuristic: only selectors in the catalog are ever
probed, so keys published under uncommon selectors are missed. Providers change
their defaults over time, so the catalog is data that can be swapped for a
wordlist file without touching the scanner.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union

from .exceptions import ConfigurationError

_SELECTOR_PATTERN = re.compile(
    r"^[a-zA-Z0-9_](?:[a-zA-Z0-9_\-]{0,61}[a-zA-Z0-9_])?"
    r"(?:\.[a-zA-Z0-9_](?:[a-zA-Z0-9_\-]{0,61}[a-zA-Z0-9_])?)*$"
)


@dataclass(frozen=True)
class SelectorCatalog:
    version: str
    selectors: tuple

    def __iter__(self):
        return iter(self.selectors)

    def __len__(self) -> int:
        return len(self.selectors)


def is_valid_selector(selector: str) -> bool:
    return bool(_SELECTOR_PATTERN.match(selector))


def build_catalog(version: str, selectors: Iterable[str]) -> SelectorCatalog:
    """Validate, lower-case and de-duplicate selectors, keeping first-seen order."""
    seen: dict[str, None] = {}
    invalid = []
    for raw in selectors:
        selector = raw.strip().lower()
        if not selector:
            continue
        if not is_valid_selector(selector):
            invalid.append(raw)
            continue
        seen.setdefault(selector, None)
    if invalid:
        raise ConfigurationError(f"Invalid DKIM selectors in catalog {version}: {', '.join(invalid)}")
    if not seen:
        raise ConfigurationError(f"Selector catalog {version} is empty")
    return SelectorCatalog(version=version, selectors=tuple(seen))


def load_catalog(path: Union[str, Path]) -> SelectorCatalog:
    """Load a wordlist file: one selector per line, blank lines and '#' comments ignored."""
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ConfigurationError(f"Cannot read selector wordlist {path}: {e}") from e
    entries = [line.split("#", 1)[0] for line in lines]
    return build_catalog(f"file:{path.name}", entries)


# Generic names, date-coded names (Google rotates yearly), and vendor defaults
# (SendGrid smtpapi, Microsoft selector1/2, HubSpot hs1/2, Mailchimp k1-3, ...).
DEFAULT_CATALOG = build_catalog("2024.1", [
    "google", "default", "mail", "smtpapi", "dkim",
    "200608", "20230601", "20221208", "20210112",
    "v1", "v2", "v3",
    "k1", "k2", "k3",
    "hs1", "hs2",
    "s1", "s2", "s3",
    "sig1", "sig2", "sig3",
    "selector", "selector1", "selector2",
    "mindbox", "bk", "sm1", "sm2", "gmail",
    "10dkim1", "11dkim1", "12dkim1",
    "memdkim", "m1", "mx", "sel1",
    "scph1220", "ml", "pps1", "scph0819",
    "skiff1", "s1024",
])
