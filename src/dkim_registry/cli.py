"""dkim-registry CLI. Discovery, snapshot export, and registry publication."""

import logging
import sys
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import RegistrySettings, ScanSettings
from .dns_fetcher import create_fetcher
from .domains import load_domains, normalize_domain
from .encoding import BYTE_PACKING_LAYOUT, encode
from .exceptions import DkimRegistryError
from .hasher import commitment_hasher
from .models import PublicationStatus
from .pipeline import RegistryUpdater
from .prober import SelectorProber
from .publisher import RegistryPublisher
from .report_text import TextReporter
from .scanner import DomainScanner
from .selector_catalog import DEFAULT_CATALOG, load_catalog
from .snapshots import SnapshotWriter

EXIT_PUBLICATION_FAILED = 2


@click.group()
@click.version_option(version=__version__, prog_name="dkim-registry")
@click.option("-v", "--verbose", is_flag=True, help="Log every DNS miss at DEBUG level.")
def cli(verbose: bool):
    """DKIM key registry updater.

    Brute-forces well-known DKIM selectors for a list of domains, commits to
    every RSA key found with a Poseidon hash, and publishes the commitments to
    the on-chain DKIM registry.
    """
    load_dotenv()
    _configure_logging(verbose)


def scan_options(f):
    f = click.option(
        "--nameserver", "nameservers", multiple=True,
        help="Resolver IP to query instead of the system resolver. Repeatable.",
    )(f)
    f = click.option(
        "--dns-timeout", type=float, default=None, envvar="DKIM_DNS_TIMEOUT",
        help="Per-query DNS timeout in seconds. [default: 5]",
    )(f)
    f = click.option(
        "--workers", type=int, default=None, envvar="DKIM_SCAN_WORKERS",
        help="Concurrent DNS probes. [default: 32]",
    )(f)
    f = click.option(
        "--no-write", is_flag=True, help="Do not write JSON snapshots.",
    )(f)
    f = click.option(
        "--out-dir", default="out", show_default=True, type=click.Path(file_okay=False),
        help="Directory for JSON snapshots.",
    )(f)
    f = click.option(
        "--selectors", "selectors_file", default=None, type=click.Path(exists=True, dir_okay=False),
        help="Selector wordlist to use instead of the built-in catalog.",
    )(f)
    f = click.argument("domains_file", type=click.Path(exists=True, dir_okay=False))(f)
    return f


@cli.command("scan")
@scan_options
def scan(domains_file: str, selectors_file: Optional[str], out_dir: str, no_write: bool,
         workers: Optional[int], dns_timeout: Optional[float], nameservers: tuple):
    """Discover keys for every domain in DOMAINS_FILE and export snapshots. Publishes nothing."""
    try:
        updater = _build_updater(selectors_file, workers, dns_timeout, nameservers)
        result = updater.run(load_domains(domains_file), publish=False)
        _write_snapshots(result, out_dir, no_write)
        TextReporter().render(result)
    except DkimRegistryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command("update")
@scan_options
@click.option("--dry-run", is_flag=True, help="Scan and export, but skip publication.")
@click.option(
    "--tx-timeout", type=float, default=None,
    help="Seconds to wait for each transaction receipt. [default: 120, env DKIM_TX_TIMEOUT]",
)
def update(domains_file: str, selectors_file: Optional[str], out_dir: str, no_write: bool,
           workers: Optional[int], dns_timeout: Optional[float], nameservers: tuple,
           dry_run: bool, tx_timeout: Optional[float]):
    """Discover keys for DOMAINS_FILE and publish their commitments to the registry.

    Requires RPC_URL, DKIM_REGISTRY and PRIVATE_KEY (environment or .env).
    """
    try:
        publisher = None
        if not dry_run:
            # Fail on missing credentials before any DNS traffic
            publisher = RegistryPublisher(RegistrySettings.from_env(confirmation_timeout=tx_timeout))
        updater = _build_updater(selectors_file, workers, dns_timeout, nameservers, publisher)
        result = updater.run(load_domains(domains_file), publish=not dry_run)
        _write_snapshots(result, out_dir, no_write)
        TextReporter().render(result)
    except DkimRegistryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if result.publications_with(PublicationStatus.FAILED):
        sys.exit(EXIT_PUBLICATION_FAILED)


@cli.command("probe")
@click.argument("selector")
@click.argument("domain")
@click.option("--dns-timeout", type=float, default=None, envvar="DKIM_DNS_TIMEOUT")
def probe(selector: str, domain: str, dns_timeout: Optional[float]):
    """Look up one DKIM SELECTOR for DOMAIN and show its limbs and commitment."""
    try:
        settings = ScanSettings.from_env(dns_timeout=dns_timeout)
        fetcher = create_fetcher(timeout=settings.dns_timeout, rate=settings.rate_limit,
                                 nameservers=settings.nameservers or None)
        domain = normalize_domain(domain)
        modulus = SelectorProber(fetcher).probe(domain, selector.strip().lower())
        reporter = TextReporter()
        if modulus is None:
            reporter.render_key(domain, selector, None)
            sys.exit(1)
        hasher = commitment_hasher()
        reporter.render_key(
            domain, selector, modulus,
            chunked=encode(modulus, BYTE_PACKING_LAYOUT),
            commitment=hasher.hash(encode(modulus, hasher.layout)),
        )
    except DkimRegistryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command("commit")
@click.argument("modulus")
def commit(modulus: str):
    """Encode and hash a MODULUS given in decimal or 0x-prefixed hex."""
    try:
        value = int(modulus.strip(), 0)
    except ValueError:
        raise click.BadParameter("must be a decimal or 0x-prefixed hex integer", param_hint="MODULUS")
    if value <= 0:
        raise click.BadParameter("must be positive", param_hint="MODULUS")
    try:
        hasher = commitment_hasher()
        TextReporter().render_key(
            "modulus", None, value,
            chunked=encode(value, BYTE_PACKING_LAYOUT),
            commitment=hasher.hash(encode(value, hasher.layout)),
        )
    except DkimRegistryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


# ── Wiring ─────────────────────────────────────────────────────────────────────

def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("dkim_registry")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)


def _build_updater(selectors_file: Optional[str], workers: Optional[int], dns_timeout: Optional[float],
                   nameservers: tuple, publisher: Optional[RegistryPublisher] = None) -> RegistryUpdater:
    settings = ScanSettings.from_env(
        max_workers=workers,
        dns_timeout=dns_timeout,
        nameservers=list(nameservers) or None,
    )
    catalog = load_catalog(selectors_file) if selectors_file else DEFAULT_CATALOG
    fetcher = create_fetcher(timeout=settings.dns_timeout, rate=settings.rate_limit,
                             nameservers=settings.nameservers or None)
    scanner = DomainScanner(SelectorProber(fetcher), max_workers=settings.max_workers)
    # Hash layout is validated here, before any DNS traffic
    return RegistryUpdater(scanner, commitment_hasher(), publisher=publisher, catalog=catalog)


def _write_snapshots(result, out_dir: str, no_write: bool) -> None:
    if no_write:
        return
    for path in SnapshotWriter(out_dir).write_all(result):
        click.echo(f"Snapshot written to: {path}", err=True)
