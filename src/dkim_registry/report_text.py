"""Rich terminal renderer for scan and publication summaries."""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .models import ChunkedEncoding, PipelineResult, PublicationStatus

PUBLICATION_STYLE = {
    PublicationStatus.PUBLISHED: "green",
    PublicationStatus.NOOP:      "dim",
    PublicationStatus.FAILED:    "bold red",
}


def _short(value: int, width: int = 24) -> str:
    text = str(value)
    return text if len(text) <= width else f"{text[:width // 2]}…{text[-width // 2:]}"


class TextReporter:
    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    def render(self, result: PipelineResult) -> None:
        c = self._console
        c.print()
        c.print(Panel("[bold]DKIM REGISTRY UPDATE[/bold]", style="bold blue", expand=False))
        self._render_domains(result)
        self._render_encoding_failures(result)
        self._render_summary(result)

    def render_key(self, domain: str, selector: Optional[str], modulus: Optional[int],
                   chunked: Optional[ChunkedEncoding] = None, commitment: Optional[int] = None) -> None:
        c = self._console
        c.print()
        title = f"{selector}._domainkey.{domain}" if selector else domain
        c.print(Panel(f"[bold]DKIM KEY: {title}[/bold]", style="bold blue", expand=False))
        if modulus is None:
            c.print("\n[red]No RSA key found.[/red]")
            return
        c.print(f"\n[bold]Modulus bits:[/bold] {modulus.bit_length()}")
        c.print(f"[bold]Modulus (hex):[/bold] {modulus:x}")
        if chunked is not None:
            layout = chunked.layout
            c.print(f"[bold]Limbs ({layout.chunk_bits} x {layout.chunk_count}):[/bold]")
            for i, limb in enumerate(chunked.limbs):
                c.print(f"  [{i:>2}] {limb}")
        if commitment is not None:
            c.print(f"[bold green]Commitment:[/bold green] {commitment}")

    # ── Section Renderers ──────────────────────────────────────────────────────

    def _render_domains(self, result: PipelineResult) -> None:
        publications = {p.domain: p for p in result.publications}
        table = Table(box=box.SIMPLE_HEAD, show_lines=False)
        table.add_column("Domain", style="bold")
        table.add_column("Keys", justify="right")
        table.add_column("Commitments")
        table.add_column("Publication")

        for domain in result.domains:
            keys = result.keys.get(domain, [])
            hashes = result.commitments.get(domain, [])
            publication = publications.get(domain)
            if publication is None:
                status = "[dim]-[/dim]"
            else:
                style = PUBLICATION_STYLE[publication.status]
                detail = escape(publication.tx_hash or publication.error or "")
                status = f"[{style}]{publication.status.value}[/] {detail}".rstrip()
            table.add_row(
                domain,
                str(len(keys)) if keys else "[red]0[/red]",
                "\n".join(_short(h) for h in hashes) or "[dim]-[/dim]",
                status,
            )
        self._console.print(table)

    def _render_encoding_failures(self, result: PipelineResult) -> None:
        if not result.encoding_failures:
            return
        c = self._console
        c.print("[bold yellow]Skipped keys:[/bold yellow]")
        for failure in result.encoding_failures:
            c.print(f"  • {failure.domain}: {escape(failure.reason)}")

    def _render_summary(self, result: PipelineResult) -> None:
        c = self._console
        c.print(f"\n[bold]Domains processed:[/bold] {len(result.domains)}")
        c.print(f"[bold]Domains with keys:[/bold] {len(result.keys)}")
        c.print(f"[bold]Keys found:[/bold] {result.key_count}")
        c.print(f"[bold]Commitments:[/bold] {result.commitment_count}")
        if result.publications:
            published = len(result.publications_with(PublicationStatus.PUBLISHED))
            failed = len(result.publications_with(PublicationStatus.FAILED))
            noop = len(result.publications_with(PublicationStatus.NOOP))
            fail_style = "bold red" if failed else "green"
            c.print(
                f"[bold]Publications:[/bold] [green]{published} published[/green], "
                f"{noop} no-op, [{fail_style}]{failed} failed[/]"
            )
