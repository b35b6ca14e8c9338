"""CLI interface for DealBook."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dealbook.analysis.portfolio import breakdown_by_type, count_by_type, filter_by_type, summarize
from dealbook.analysis.ranking import cashflow_ranking, equity_ranking, quality_tier
from dealbook.analysis.scenarios import scenarios
from dealbook.config import AppConfig, load_config
from dealbook.db.repository import Repository
from dealbook.export import InterchangeError
from dealbook.models import Deal, DealInput, QualityTier, ValuationResult
from dealbook.service import DealDesk

app = typer.Typer(
    name="dealbook",
    help="Personal real-estate investment calculator - evaluate, compare and rank deals.",
    no_args_is_help=True,
)
console = Console()

TIER_STYLES = {
    QualityTier.NEGATIVE: "bold red",
    QualityTier.WEAK: "yellow",
    QualityTier.OKAY: "cyan",
    QualityTier.GOOD: "green",
    QualityTier.TOP_DEAL: "bold green",
}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _desk(cfg: AppConfig) -> DealDesk:
    return DealDesk(Repository(cfg.database.url))


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _pct(value: Optional[float]) -> str:
    return "—" if value is None else f"{value:.2f} %"


def _tier_text(equity_return: float) -> str:
    tier = quality_tier(equity_return)
    style = TIER_STYLES[tier]
    return f"[{style}]{tier.label}[/{style}]"


def _bar(width: float, positive: bool = True) -> str:
    cells = round(width / 5)
    color = "green" if positive else "red"
    return f"[{color}]{'█' * cells}[/{color}]"


def _result_panel(title: str, result: ValuationResult) -> Panel:
    parts = [
        f"Loan: {_money(result.loan_amount)} | Monthly payment: {_money(result.monthly_loan_payment)}",
        f"Broker fee: {_money(result.broker_fee_amount)} | Other costs: {_money(result.other_buying_costs_amount)}",
        f"Purchase costs: {_money(result.total_purchase_costs)} | Total investment: {_money(result.total_investment)}",
        f"Monthly cashflow: {_money(result.monthly_cashflow)}",
        f"Gross yield: {_pct(result.gross_yield_percent)} | Equity return: {_pct(result.equity_return_percent)}",
        f"Deal quality: {_tier_text(result.equity_return_percent)}",
    ]
    return Panel("\n".join(parts), title=title or "Valuation")


@app.command()
def evaluate(
    title: str = typer.Option("", "--title", "-t", help="Name of the property"),
    price: str = typer.Option("", "--price", "-p", help="Purchase price"),
    equity: str = typer.Option("", "--equity", "-e", help="Cash equity contributed"),
    rent: str = typer.Option("", "--rent", "-r", help="Monthly rent"),
    expenses: str = typer.Option("", "--expenses", help="Monthly non-allocable expenses"),
    rate: str = typer.Option("", "--rate", help="Annual interest rate in percent"),
    years: str = typer.Option("", "--years", help="Loan term in years"),
    broker: Optional[str] = typer.Option(None, "--broker", help="Broker fee in percent of price"),
    other: Optional[str] = typer.Option(None, "--other", help="Other buying costs in percent of price"),
    property_type: Optional[str] = typer.Option(None, "--type", help="apartment, house, renovation_project, commercial"),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="buy_and_hold, fix_and_flip, owner_occupied"),
    photos: str = typer.Option("", "--photos", help="Photo URLs, comma separated"),
    save: bool = typer.Option(False, "--save", help="Add the deal to the portfolio"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config TOML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Evaluate a deal; blank or invalid numbers count as 0."""
    setup_logging(verbose)
    cfg = load_config(config_path)
    deal_input = DealInput(
        title=title,
        purchase_price=price,
        equity=equity,
        monthly_rent=rent,
        monthly_expenses=expenses,
        annual_interest_rate_percent=rate,
        loan_term_years=years,
        broker_fee_percent=broker if broker is not None else cfg.defaults.broker_fee_percent,
        other_costs_percent=other if other is not None else cfg.defaults.other_costs_percent,
        property_type=property_type or cfg.defaults.property_type,
        strategy=strategy or cfg.defaults.strategy,
        photos=photos,
    )

    desk = _desk(cfg)
    result = desk.evaluate(deal_input)
    console.print(_result_panel(deal_input.title, result))

    table = Table(title="Scenarios")
    table.add_column("Scenario", style="cyan")
    table.add_column("Cashflow / month", justify="right")
    table.add_column("Equity return", justify="right")
    for sc in scenarios(result, cfg.scenarios):
        table.add_row(sc.label, _money(sc.monthly_cashflow), _pct(sc.equity_return_percent))
    console.print(table)

    if save:
        outcome = desk.commit()
        if not outcome.ok:
            console.print(f"[yellow]{outcome.reason}[/yellow]")
            raise typer.Exit(code=1)
        console.print(f"[bold green]Saved deal {outcome.deal.id}[/bold green]")


def _deals_table(deals: list[Deal], title: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="white")
    table.add_column("Type", style="cyan")
    table.add_column("Strategy", style="cyan")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Cashflow / month", justify="right")
    table.add_column("Gross yield", justify="right")
    table.add_column("Equity return", justify="right")
    for deal in deals:
        cf_style = "green" if deal.monthly_cashflow >= 0 else "red"
        table.add_row(
            str(deal.id),
            deal.title[:35],
            deal.property_type.label,
            deal.strategy.label,
            _money(deal.input.purchase_price),
            f"[{cf_style}]{_money(deal.monthly_cashflow)}[/{cf_style}]",
            _pct(deal.gross_yield_percent),
            _pct(deal.equity_return_percent),
        )
    return table


@app.command("list")
def list_deals(
    property_type: str = typer.Option("all", "--type", help="Filter by property type"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """List saved deals in the order they were added."""
    cfg = load_config(config_path)
    deals = _desk(cfg).deals()
    if not deals:
        console.print("[yellow]No deals saved yet. Use `dealbook evaluate --save`.[/yellow]")
        return
    counts = count_by_type(deals)
    if property_type not in counts:
        console.print(f"[yellow]Unknown property type: {property_type}[/yellow]")
        raise typer.Exit(code=1)
    shown = filter_by_type(deals, property_type)

    pills = " | ".join(f"{key}: {n}" for key, n in counts.items())
    console.print(f"[dim]{pills}[/dim]")
    if not shown:
        console.print("[yellow]No deals of this type.[/yellow]")
        return
    console.print(_deals_table(shown, "Saved Deals"))


@app.command()
def show(
    deal_id: int = typer.Argument(..., help="Deal ID"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Show the inputs and metrics of one saved deal."""
    cfg = load_config(config_path)
    deal = _desk(cfg).get(deal_id)
    if deal is None:
        console.print(f"[yellow]No deal with ID {deal_id}.[/yellow]")
        raise typer.Exit(code=1)

    i = deal.input
    console.print(
        Panel(
            "\n".join(
                [
                    f"Type: {i.property_type.label} | Strategy: {i.strategy.label}",
                    f"Price: {_money(i.purchase_price)} | Equity: {_money(i.equity)}",
                    f"Rent: {_money(i.monthly_rent)} | Expenses: {_money(i.monthly_expenses)}",
                    f"Interest: {i.annual_interest_rate_percent:g} % | Term: {i.loan_term_years:g} years",
                    f"Broker: {i.broker_fee_percent:g} % | Other costs: {i.other_costs_percent:g} %",
                    f"Added: {deal.created_at:%Y-%m-%d %H:%M}",
                ]
                + [f"Photo: {url}" for url in i.photos]
            ),
            title=f"{deal.title} ({deal.id})",
        )
    )
    console.print(_result_panel("Metrics", deal.result))


@app.command()
def delete(
    deal_id: int = typer.Argument(..., help="Deal ID"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Remove a saved deal."""
    cfg = load_config(config_path)
    if not _desk(cfg).delete(deal_id):
        console.print(f"[yellow]No deal with ID {deal_id}.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"Deleted deal {deal_id}")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Remove all saved deals."""
    cfg = load_config(config_path)
    if not yes and not typer.confirm("Really delete all saved deals?"):
        raise typer.Exit()
    removed = _desk(cfg).clear()
    console.print(f"Removed {removed} deal(s)")


@app.command()
def summary(
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Portfolio totals, averages, best deals and per-type breakdown."""
    cfg = load_config(config_path)
    deals = _desk(cfg).deals()
    s = summarize(deals)

    cf_style = "green" if s.total_monthly_cashflow >= 0 else "red"
    lines = [
        f"Deals in portfolio: {s.count}",
        f"Total cashflow / month: [{cf_style}]{_money(s.total_monthly_cashflow)}[/{cf_style}]",
        f"Avg gross yield: {_pct(s.avg_gross_yield_percent)} | Avg equity return: {_pct(s.avg_equity_return_percent)}",
    ]
    if s.best_by_equity_return is not None:
        best = s.best_by_equity_return
        lines.append(f"Best equity return: {best.title} - {_pct(best.equity_return_percent)}")
    if s.best_by_monthly_cashflow is not None:
        best = s.best_by_monthly_cashflow
        lines.append(f"Best cashflow: {best.title} - {_money(best.monthly_cashflow)} / month")
    console.print(Panel("\n".join(lines), title="Portfolio"))

    if not deals:
        return
    table = Table(title="By property type")
    table.add_column("Type", style="cyan")
    table.add_column("Deals", justify="right")
    table.add_column("Cashflow / month", justify="right")
    table.add_column("Avg gross yield", justify="right")
    table.add_column("Avg equity return", justify="right")
    for bucket in breakdown_by_type(deals):
        table.add_row(
            bucket.label,
            str(bucket.count),
            _money(bucket.total_monthly_cashflow),
            _pct(bucket.avg_gross_yield_percent),
            _pct(bucket.avg_equity_return_percent),
        )
    console.print(table)


@app.command()
def ranking(
    limit: int = typer.Option(20, "--limit", "-l", help="Max deals to show"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Rank deals by equity return and by monthly cashflow."""
    cfg = load_config(config_path)
    deals = _desk(cfg).deals()
    if not deals:
        console.print("[yellow]No deals saved yet.[/yellow]")
        return
    min_width = cfg.analytics.min_bar_width

    table = Table(title="Ranking by equity return", show_lines=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="white")
    table.add_column("Equity return", justify="right")
    table.add_column("", width=20)
    table.add_column("Cashflow / month", justify="right")
    table.add_column("Quality")
    for row in equity_ranking(deals, min_width)[:limit]:
        table.add_row(
            str(row.rank),
            row.deal.title[:35],
            _pct(row.value),
            _bar(row.bar_width, row.positive),
            _money(row.deal.monthly_cashflow),
            _tier_text(row.value),
        )
    console.print(table)

    table = Table(title="Cashflow per month")
    table.add_column("Title", style="white")
    table.add_column("", width=20)
    table.add_column("Cashflow / month", justify="right")
    for row in cashflow_ranking(deals, min_width)[:limit]:
        table.add_row(row.deal.title[:35], _bar(row.bar_width, row.positive), _money(row.value))
    console.print(table)


@app.command()
def export(
    path: Path = typer.Argument(None, help="Target JSON file"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Export all saved deals as JSON."""
    cfg = load_config(config_path)
    target = path or Path(cfg.export.default_filename)
    outcome = _desk(cfg).export(target)
    if not outcome.ok:
        console.print(f"[yellow]{outcome.reason}[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"Exported deals to {target}")


@app.command("import")
def import_deals(
    path: Path = typer.Argument(..., help="JSON file written by `dealbook export` or the browser app"),
    config_path: Path = typer.Option(None, "--config", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Import deals from a JSON export."""
    setup_logging(verbose)
    cfg = load_config(config_path)
    try:
        imported = _desk(cfg).import_deals(path)
    except (OSError, InterchangeError) as e:
        console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(code=1)
    console.print(f"Imported {len(imported)} deal(s)")


@app.command()
def config_show(
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Display current configuration."""
    cfg = load_config(config_path)
    import json

    console.print_json(json.dumps(cfg.model_dump(), indent=2, default=str))


@app.command()
def serve(
    config_path: Path = typer.Option(None, "--config", "-c"),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Start the HTTP API server."""
    import uvicorn

    cfg = load_config(config_path)

    from dealbook.api.server import create_app

    web_app = create_app(cfg)
    console.print(f"[bold]Starting DealBook API at http://{host}:{port}[/bold]")
    uvicorn.run(web_app, host=host, port=port)


if __name__ == "__main__":
    app()
