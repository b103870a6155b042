"""
Anise - CLI Entry Point.

Usage:
    anise add-recipe URL                          Import a recipe from a web page
    anise parse-ingredients IN.csv OUT.csv        Batch-parse ingredient lines
    anise backfill-ingredients                    Normalize legacy ingredient rows
    anise health                                  Check configuration
    anise --help                                  Show help
"""

import asyncio
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table

app = typer.Typer(
    name="anise",
    help="Anise - recipe import and ingredient normalization.",
    add_completion=False,
)
console = Console()


def _setup(verbose: bool, log_prompts: bool) -> None:
    from anise.llm.prompt_logger import enable_prompt_logging
    from anise.logging_setup import configure_logging

    configure_logging(verbose=verbose)
    if log_prompts:
        enable_prompt_logging(True)
        console.print("[dim]📝 Prompt logging enabled. Check prompt_logs/ after the run.[/dim]")


@app.command("add-recipe")
def add_recipe(
    url: str = typer.Argument(..., help="Recipe page URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all LLM prompts to prompt_logs/"),
) -> None:
    """Scrape, extract, normalize and save a recipe from URL."""
    from anise.errors import AniseError
    from anise.recipes.workflow import add_recipe_by_url

    _setup(verbose, log_prompts)

    try:
        with Live(Spinner("dots", text=f"Importing {url}..."), console=console, transient=True):
            outcome = asyncio.run(add_recipe_by_url(url))
    except AniseError as e:
        console.print(f"\n[red]❌ Import failed: {e}[/red]")
        raise typer.Exit(1)

    usage = outcome.metadata.usage
    console.print(f"\n✅ Saved recipe [bold]{outcome.result.id}[/bold] (job {outcome.job_id})")
    console.print(f"   Tokens: {usage.total_tokens:,}   Cost: ${usage.total_cost:.4f}")


@app.command("parse-ingredients")
def parse_ingredients(
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV, no header, one ingredient per line"),
    output_path: Path = typer.Argument(..., help="Output CSV path"),
    delay: int = typer.Option(0, "--delay", help="Delay between API calls in milliseconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all LLM prompts to prompt_logs/"),
) -> None:
    """Parse every ingredient line of a CSV and write the structured results."""
    from anise.ingredients.batch import batch_parse, read_lines, write_rows

    _setup(verbose, log_prompts)

    lines = read_lines(input_path)
    if not lines:
        console.print("[red]Error: No ingredients found in input file[/red]")
        raise typer.Exit(1)

    console.print("\n[bold cyan]Batch Processing Ingredients[/bold cyan]")
    console.print(f"[yellow]Input:[/yellow] {input_path}")
    console.print(f"[yellow]Output:[/yellow] {output_path}")
    console.print(f"[yellow]Total ingredients:[/yellow] {len(lines)}\n")

    started = time.monotonic()
    summary = asyncio.run(batch_parse(lines, delay_ms=delay))
    duration = time.monotonic() - started

    write_rows(output_path, summary.rows)

    usage = summary.usage
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_row("[cyan]Output file[/cyan]", str(output_path))
    table.add_row("[cyan]Total rows[/cyan]", f"{summary.total:,}")
    table.add_row(
        "[cyan]Successful[/cyan]",
        f"{summary.succeeded:,} ({summary.succeeded / summary.total * 100:.1f}%)",
    )
    table.add_row("[cyan]Errors[/cyan]", f"{summary.failed:,}")
    table.add_row("[cyan]Total cost[/cyan]", f"${usage.estimated_cost:.6f}")
    table.add_row("[cyan]Avg cost / row[/cyan]", f"${usage.estimated_cost / summary.total:.6f}")
    table.add_row("[cyan]Input tokens[/cyan]", f"{usage.input_tokens:,}")
    table.add_row("[cyan]Output tokens[/cyan]", f"{usage.output_tokens:,}")
    table.add_row("[cyan]Cache read tokens[/cyan]", f"{usage.cache_read_input_tokens:,}")
    table.add_row("[cyan]Cache hit rate[/cyan]", f"{summary.cache_hit_rate:.1f}%")
    table.add_row("[cyan]Duration[/cyan]", f"{duration:.1f}s")

    console.print("\n[bold green]✓ Batch Processing Complete[/bold green]\n")
    console.print(table)


@app.command("backfill-ingredients")
def backfill_ingredients(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Parse and match every recipe ingredient row that has no catalog id yet."""
    from anise.recipes.backfill import backfill_ingredients as run_backfill

    _setup(verbose, log_prompts=False)

    outcome = asyncio.run(run_backfill())
    report = outcome.result

    console.print("\n" + "=" * 60)
    console.print("[bold]Backfill Complete[/bold]")
    console.print("=" * 60)
    console.print(f"✅ Successfully processed: {report.succeeded}")
    console.print(f"❌ Failed: {report.failed}")
    console.print(f"   Cost: ${outcome.metadata.usage.total_cost:.4f} (job {outcome.job_id})")

    if report.failures:
        console.print("\n[bold]Errors:[/bold]")
        for failure in report.failures:
            console.print(f"  ID {failure.row_id}: \"{failure.ingredient}\"")
            during = f"{failure.phase} failed: " if failure.phase else ""
            console.print(f"    → {during}{failure.error}")
        raise typer.Exit(1)


@app.command()
def health() -> None:
    """Check system health and configuration."""
    from anise.config import get_settings

    console.print("\n[bold]Anise Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.anise_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Model: {settings.llm_model}")

        if settings.openai_api_key.startswith("sk-"):
            console.print("✅ OpenAI API key configured")
        else:
            console.print("⚠️  OpenAI API key may be invalid")

        if settings.supabase_url.startswith("https://"):
            console.print("✅ Supabase URL configured")
        else:
            console.print("❌ Supabase URL missing or invalid")

        console.print("\n[green]All checks passed![/green]")

    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from anise import __version__

    console.print(f"Anise version {__version__}")


if __name__ == "__main__":
    app()
