"""Domain list input."""

from pathlib import Path
from typing import Iterable, Union


def normalize_domain(domain: str) -> str:
    return domain.strip().lower().rstrip(".")


def parse_domains(lines: Iterable[str]) -> list[str]:
    """One domain per line. Blank lines and '#' comments are skipped, duplicates collapsed."""
    seen: dict[str, None] = {}
    for line in lines:
        domain = normalize_domain(line.split("#", 1)[0])
        if domain:
            seen.setdefault(domain, None)
    return list(seen)


def load_domains(path: Union[str, Path]) -> list[str]:
    return parse_domains(Path(path).read_text(encoding="utf-8").splitlines())
