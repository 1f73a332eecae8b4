"""
CLI interface for Credit Analytics.

Provides command-line access to cost estimates, growth rates, daily
usage series and the full admin dashboard.
"""

import logging
import sys
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from credit_analytics.config.loader import DEFAULT_CONFIG, AnalyticsConfig, load_analytics_config
from credit_analytics.core.composer import (
    AnalyticsDashboard,
    compose_dashboard,
    daily_usage_view,
)
from credit_analytics.core.daily_series import MonthAnchor
from credit_analytics.core.errors import InvalidInput
from credit_analytics.core.formatting import (
    format_count,
    format_currency,
    format_growth,
    format_unit_cost,
)
from credit_analytics.core.growth import ZeroBaselinePolicy, compute_growth
from credit_analytics.core.pricing import estimate_cost, unit_cost
from credit_analytics.storage.source import (
    COST_PER_FEATURE,
    DAILY_TRENDS,
    DASHBOARD_STATS,
    FEATURE_USAGE,
    MONTHLY_TRENDS,
    TOP_USERS,
    SnapshotSource,
)

app = typer.Typer()
console = Console()

# Degraded views still exit 0; only contract and config errors fail
EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")
):
    """Credit Analytics CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )
    if ctx.invoked_subcommand is None:
        console.print("Credit Analytics - Use --help to see available commands")


def _load_config(path: Optional[str]) -> AnalyticsConfig:
    """Load config or exit with a failure code."""
    if path is None:
        return DEFAULT_CONFIG
    try:
        return load_analytics_config(path)
    except (FileNotFoundError, yaml.YAMLError, ValueError) as e:
        console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)


def _resolve_anchor(year: Optional[int], month: Optional[int]) -> MonthAnchor:
    current = MonthAnchor.current()
    try:
        return MonthAnchor(year=year or current.year, month=month or current.month)
    except ValueError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def cost(
    credits: int = typer.Argument(..., help="Credits spent"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to analytics config YAML")
):
    """Estimate the cost of a credit quantity."""
    config = _load_config(config_path)
    try:
        estimate = estimate_cost(credits, config.pricing)
        rate = unit_cost(credits, config.pricing)
    except InvalidInput as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"Credits: {format_count(credits)}")
    console.print(f"Rate per credit: {format_unit_cost(rate)}")
    console.print(f"Estimated cost: {format_currency(estimate)}")


@app.command()
def growth(
    current: float = typer.Argument(..., help="Current period value"),
    previous: float = typer.Argument(..., help="Previous period value"),
    policy: str = typer.Option(
        DEFAULT_CONFIG.zero_baseline_policy.value,
        "--policy",
        "-p",
        help="Zero previous-period policy: not_applicable or clamp"
    )
):
    """Compute month-over-month growth between two values."""
    try:
        zero_policy = ZeroBaselinePolicy(policy.lower())
        result = compute_growth(current, previous, zero_policy)
    except (InvalidInput, ValueError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"Growth: {format_growth(result)}")


@app.command()
def daily(
    snapshot: str = typer.Argument(..., help="Path to analytics snapshot (JSON or YAML)"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Anchor year (UTC), defaults to current"),
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Anchor month (UTC), defaults to current"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Window length, defaults to the month's length")
):
    """Show daily credit usage for a month, one row per day."""
    anchor = _resolve_anchor(year, month)
    window_days = days if days is not None else anchor.days_in_month()
    try:
        result = daily_usage_view(SnapshotSource(snapshot), window_days, anchor)
    except InvalidInput as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    if result.error:
        console.print(f"[yellow]{escape(result.error)}[/]")

    table = Table(title="Daily Usage")
    table.add_column("Day", justify="right")
    table.add_column("Date")
    table.add_column("Credits", justify="right")
    for slot in result.data:
        table.add_row(str(slot.day_index), slot.calendar_date.isoformat(), format_count(slot.credits_spent))
    console.print(table)


@app.command()
def report(
    snapshot: str = typer.Argument(..., help="Path to analytics snapshot (JSON or YAML)"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to analytics config YAML"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Anchor year (UTC), defaults to current"),
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Anchor month (UTC), defaults to current"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Window length, defaults to the month's length")
):
    """
    Render the admin analytics dashboard from a snapshot.

    Each view loads independently. A view whose data is missing or
    malformed shows a one-line error and the rest of the report still
    renders.
    """
    config = _load_config(config_path)
    anchor = _resolve_anchor(year, month)
    try:
        dashboard = compose_dashboard(SnapshotSource(snapshot), config, anchor, days)
    except InvalidInput as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    _display_dashboard(dashboard)


def _print_error(error: Optional[str]) -> bool:
    if error:
        console.print(f"[yellow]{escape(error)}[/]")
        return True
    return False


def _display_dashboard(dashboard: AnalyticsDashboard):
    """Display every view in dashboard order."""
    console.print("\n[bold]Admin Analytics[/bold]")
    console.print("-" * 40)

    summary = dashboard.view(DASHBOARD_STATS)
    console.print("\n[bold]Overview[/bold]")
    if not _print_error(summary.error):
        for card in summary.data:
            change = f"  ({card.change})" if card.change else ""
            console.print(f"{card.title}: {card.value}{change}")

    features = dashboard.view(FEATURE_USAGE)
    table = Table(title="Credits Burned by Feature")
    table.add_column("Feature")
    table.add_column("Credits", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Estimated Cost", justify="right")
    for entry in features.data:
        table.add_row(entry.name, entry.credits_display, entry.percentage_display, entry.cost_display)
    console.print()
    if not _print_error(features.error):
        console.print(table)

    users = dashboard.view(TOP_USERS)
    table = Table(title="Top Users by Usage")
    table.add_column("#", justify="right")
    table.add_column("User")
    table.add_column("Credits", justify="right")
    table.add_column("Estimated Cost", justify="right")
    for entry in users.data:
        table.add_row(str(entry.rank), entry.name, format_count(entry.credits), entry.cost_display)
    if not _print_error(users.error):
        console.print(table)

    costs = dashboard.view(COST_PER_FEATURE)
    table = Table(title="Cost per Feature")
    table.add_column("Feature")
    table.add_column("Cost", justify="right")
    for entry in costs.data.entries:
        table.add_row(entry.name, entry.cost_display)
    table.add_row("[bold]Total[/bold]", costs.data.total_cost_display)
    if not _print_error(costs.error):
        console.print(table)

    trends = dashboard.view(MONTHLY_TRENDS)
    console.print("\n[bold]Monthly Trends[/bold]")
    if not _print_error(trends.error):
        for label, value in trends.data.rows():
            console.print(f"{label}: {value}")

    daily_view = dashboard.view(DAILY_TRENDS)
    total = sum(slot.credits_spent for slot in daily_view.data)
    console.print("\n[bold]Daily Usage[/bold]")
    _print_error(daily_view.error)
    if daily_view.data:
        first, last = daily_view.data[0], daily_view.data[-1]
        console.print(
            f"{first.calendar_date.isoformat()} to {last.calendar_date.isoformat()}: "
            f"{format_count(total)} credits over {len(daily_view.data)} days"
        )


if __name__ == "__main__":
    app()
