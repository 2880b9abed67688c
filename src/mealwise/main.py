"""
Mealwise - CLI Entry Point.

Usage:
    mealwise estimate bundle.json --mode cheap     Price a shopping list
    mealwise export-csv bundle.json                Write the shopping list CSV
    mealwise export-pdf bundle.json --user-name X  Write the meal plan PDF
    mealwise serve                                 Start the HTTP service
    mealwise --help                                Show help

A bundle is a JSON file with "plan", optional "shopping_list" and
"price_baselines". Without a shopping list one is aggregated from the plan.
"""

import json
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="mealwise",
    help="Mealwise - shopping list budget estimates and meal plan exports.",
    add_completion=False,
)
console = Console()


def _load_bundle(path: Path) -> dict:
    """Read a bundle and fill in the shopping list from the plan when it is absent."""
    from mealwise.shopping.aggregator import aggregate_plan_items

    try:
        bundle = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]FAIL Could not read bundle {path}: {e}[/red]")
        raise typer.Exit(1)

    plan = bundle.get("plan")
    shopping_list = bundle.get("shopping_list")
    if isinstance(shopping_list, list):
        shopping_list = {"items": shopping_list}
    if shopping_list is None and plan is not None:
        items = aggregate_plan_items(plan.get("items") or [])
        shopping_list = {"items": [item.to_dict() for item in items]}

    return {
        "plan": plan,
        "shopping_list": shopping_list,
        "price_baselines": bundle.get("price_baselines") or [],
    }


def _parse_generated_at(value: str | None) -> datetime | None:
    from mealwise.budget.models import parse_timestamp

    try:
        return parse_timestamp(value)
    except ValueError:
        console.print(f"[red]Invalid --generated-at timestamp: {value}[/red]")
        raise typer.Exit(1)


def _write_artifact(artifact, out: Path | None) -> None:
    target = out or Path(artifact.filename)
    if target.is_dir():
        target = target / artifact.filename
    target.write_bytes(artifact.content)
    console.print(f"[green]OK[/green] Wrote {target} ({len(artifact.content)} bytes)")


@app.command()
def estimate(
    bundle: Path = typer.Argument(..., help="Bundle JSON file"),
    mode: str = typer.Option(None, "--mode", "-m", help="Mode: cheap, standard, premium"),
    explain: bool = typer.Option(False, "--explain", help="Show values hidden by a lock"),
) -> None:
    """Estimate the shopping list budget for a bundle."""
    from mealwise.budget.estimator import compare_store_prices, estimate_budget
    from mealwise.config import configure_logging, get_core_settings
    from mealwise.core.modes import mode_label
    from mealwise.export.pipeline import shopping_list_items

    settings = get_core_settings()
    configure_logging(settings.log_level)

    data = _load_bundle(bundle)
    if data["shopping_list"] is None:
        console.print("[red]FAIL Bundle has neither a plan nor a shopping list[/red]")
        raise typer.Exit(1)

    items = shopping_list_items(data["shopping_list"])
    result = estimate_budget(items, data["price_baselines"], mode, config=settings.estimator_config())
    view = result.view()

    console.print(f"\n[bold]Budget estimate ({mode_label(view.mode)})[/bold]")
    table = Table()
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Items", str(result.item_count))
    table.add_row("Total", "-" if view.total is None else f"{view.total:.2f}")
    table.add_row("Confidence", "-" if view.confidence is None else view.confidence.value)
    table.add_row("Missing items", "-" if view.missing_item_count is None else str(view.missing_item_count))
    table.add_row("Locked", "yes" if view.locked else "no")
    console.print(table)

    if view.locked:
        console.print("[yellow]WARN[/yellow] Estimate locked: not enough price data")
    if explain:
        console.print_json(data=result.to_audit_dict())

    stores = compare_store_prices(items, data["price_baselines"])
    if stores:
        console.print("\n[bold]Store totals[/bold]")
        store_table = Table()
        store_table.add_column("Store")
        store_table.add_column("Total", justify="right")
        store_table.add_column("Items priced", justify="right")
        for store in stores:
            store_table.add_row(store.store, f"{store.total_price:.2f}", str(store.item_count))
        console.print(store_table)

    console.print(f"[dim]{settings.estimate_disclaimer}[/dim]")


@app.command("export-csv")
def export_csv(
    bundle: Path = typer.Argument(..., help="Bundle JSON file"),
    out: Path = typer.Option(None, "--out", "-o", help="Output file or directory"),
    mode: str = typer.Option(None, "--mode", "-m", help="Mode: cheap, standard, premium"),
    generated_at: str = typer.Option(None, "--generated-at", help="Fixed ISO timestamp"),
) -> None:
    """Write the shopping list CSV for a bundle."""
    from mealwise.config import configure_logging, get_core_settings
    from mealwise.errors import MealwiseError
    from mealwise.export.pipeline import build_shopping_list_export

    settings = get_core_settings()
    configure_logging(settings.log_level)
    data = _load_bundle(bundle)

    try:
        artifact = build_shopping_list_export(
            data["plan"],
            data["shopping_list"],
            data["price_baselines"],
            mode=mode,
            config=settings.estimator_config(),
            disclaimer=settings.estimate_disclaimer,
            generated_at=_parse_generated_at(generated_at),
        )
    except MealwiseError as e:
        console.print(f"[red]FAIL {e.message}: {e.detail}[/red]")
        raise typer.Exit(1)

    _write_artifact(artifact, out)


@app.command("export-pdf")
def export_pdf(
    bundle: Path = typer.Argument(..., help="Bundle JSON file"),
    user_name: str = typer.Option(None, "--user-name", "-u", help="Name shown on the plan"),
    out: Path = typer.Option(None, "--out", "-o", help="Output file or directory"),
    mode: str = typer.Option(None, "--mode", "-m", help="Mode: cheap, standard, premium"),
    generated_at: str = typer.Option(None, "--generated-at", help="Fixed ISO timestamp"),
) -> None:
    """Write the meal plan PDF for a bundle."""
    from mealwise.config import configure_logging, get_core_settings
    from mealwise.errors import MealwiseError
    from mealwise.export.pipeline import build_meal_plan_export

    settings = get_core_settings()
    configure_logging(settings.log_level)
    data = _load_bundle(bundle)

    try:
        artifact = build_meal_plan_export(
            data["plan"],
            user_name=user_name,
            shopping_list=data["shopping_list"],
            baselines=data["price_baselines"],
            mode=mode,
            config=settings.estimator_config(),
            disclaimer=settings.estimate_disclaimer,
            generated_at=_parse_generated_at(generated_at),
        )
    except MealwiseError as e:
        console.print(f"[red]FAIL {e.message}: {e.detail}[/red]")
        raise typer.Exit(1)

    _write_artifact(artifact, out)


@app.command()
def health() -> None:
    """Check configuration."""
    from mealwise_web.config import get_settings

    console.print("\n[bold]Mealwise Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("[green]OK[/green] Configuration loaded")
        console.print(f"   Environment: {settings.mealwise_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Default estimate mode: {settings.estimator_config().default_mode.value}")

        if settings.mealwise_store == "supabase":
            if settings.supabase_url.startswith("https://"):
                console.print("[green]OK[/green] Supabase URL configured")
            else:
                console.print("[red]FAIL[/red] Supabase URL missing or invalid")
                raise typer.Exit(1)
        else:
            console.print("[dim]INFO[/dim] Using in-memory store")

        if settings.mealwise_audit_log:
            console.print(f"[green]OK[/green] Audit log enabled: {settings.mealwise_audit_dir}")
        else:
            console.print("[dim]INFO[/dim] Audit log disabled")

        console.print("\n[green]All checks passed![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        console.print("[dim]Check your .env file.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from mealwise import __version__

    console.print(f"Mealwise version {__version__}")


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the HTTP service."""
    import os

    import uvicorn

    # Hosting platforms set PORT
    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Mealwise API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "mealwise_web.web.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


if __name__ == "__main__":
    app()
