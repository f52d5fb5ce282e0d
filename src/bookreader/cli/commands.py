"""CLI commands for the book reader.

Commands:
- info: Show page count and spreads of a PDF
- render: Render the pages of one spread to PNG files
- serve: Run the reader Web API
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from bookreader.config.app_config import load_app_config
from bookreader.core.pdf_source import FitzPdfSource, PdfDocument, PdfSourceError
from bookreader.core.preload import PreloadScheduler
from bookreader.core.spread_model import (
    SpreadOutOfRangeError,
    compute_spread,
    page_range_label,
    total_spreads,
)

app = typer.Typer(
    name="bookreader",
    help="Paginated PDF book reader for the school digital library.",
    no_args_is_help=True,
)

console = Console()


def _load_or_exit(source: FitzPdfSource, pdf: str) -> PdfDocument:
    try:
        return asyncio.run(source.load_document(pdf))
    except PdfSourceError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def info(
    pdf: str = typer.Argument(..., help="Path or URL of the PDF"),
) -> None:
    """Show page count, spread count and the label of every spread."""
    source = FitzPdfSource(timeout=load_app_config().api.timeout)
    document = _load_or_exit(source, pdf)
    try:
        count = document.page_count
        spreads = total_spreads(count)

        if document.metadata.get("title"):
            console.print(f"  [dim]title:[/dim]   {document.metadata['title']}")
        console.print(f"  [dim]pages:[/dim]   {count}")
        console.print(f"  [dim]spreads:[/dim] {spreads}")

        if spreads == 0:
            console.print("[yellow]⚠ El PDF no tiene páginas[/yellow]")
            return

        table = Table(title="Spreads")
        table.add_column("#", justify="right")
        table.add_column("Izquierda", justify="right")
        table.add_column("Derecha", justify="right")
        table.add_column("Etiqueta")
        for index in range(spreads):
            spread = compute_spread(count, index)
            table.add_row(
                str(index),
                str(spread.left_page),
                str(spread.right_page) if spread.has_right_page else "-",
                page_range_label(spread),
            )
        console.print(table)
    finally:
        document.close()


@app.command()
def render(
    pdf: str = typer.Argument(..., help="Path or URL of the PDF"),
    spread_index: int = typer.Option(0, "--spread", "-s", help="Spread index (0 = cover)"),
    scale: float | None = typer.Option(None, "--scale", help="Scale factor (default from config)"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output directory"),
) -> None:
    """Render the pages of a spread to PNG files."""
    config = load_app_config()
    render_scale = scale if scale is not None else config.reader.default_scale
    if render_scale <= 0:
        console.print(f"[red]✗ Escala inválida: {render_scale}[/red]")
        raise typer.Exit(code=1)

    source = FitzPdfSource(timeout=config.api.timeout)
    document = _load_or_exit(source, pdf)
    try:
        try:
            spread = compute_spread(document.page_count, spread_index)
        except SpreadOutOfRangeError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)

        console.print(f"[blue]Renderizando {page_range_label(spread)} a escala {render_scale}...[/blue]")
        written = asyncio.run(_render_spread(source, document, spread.visible_pages, render_scale, out))
    finally:
        document.close()

    if not written:
        console.print("[red]✗ No se pudo renderizar ninguna página[/red]")
        raise typer.Exit(code=1)
    for path in written:
        console.print(f"[green]✓ {path}[/green]")


async def _render_spread(
    source: FitzPdfSource,
    document: PdfDocument,
    pages: list[int],
    scale: float,
    out: Path,
) -> list[Path]:
    preloader = PreloadScheduler(source, document)
    preloader.request(pages, scale)
    await preloader.wait_idle()

    out.mkdir(parents=True, exist_ok=True)
    written = []
    for page in pages:
        surface = preloader.surface(page, scale)
        if surface is None:
            console.print(f"[yellow]⚠ Página {page} no renderizada[/yellow]")
            continue
        path = out / f"page-{page:04d}.png"
        path.write_bytes(surface.png)
        written.append(path)
    return written


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the reader Web API with uvicorn."""
    import uvicorn

    console.print(f"[blue]Sirviendo la API del lector en http://{host}:{port}[/blue]")
    uvicorn.run("bookreader.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
