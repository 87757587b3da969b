"""
Command-Line Interface for GigLedger.

Purpose
-------
Read a backup document and answer the day-to-day questions of a gig
driver without opening the app: how much did I make, how many hours do I
have left, how are my goals doing, what schedule should I take next week.

Commands
--------
- summary: Month card (income, bills, gas, net)
- hours: Hours used and remaining against the caps
- goals: Prioritized goal progress
- plans: Payment plan balances and what is due this month
- simulate: Optimal weekly block schedule
- trends: Hourly earnings by weekday and time of day
- add-income: Record a block (hour caps enforced) and save the backup
- validate: Check a backup document
- info: Version and dependency information

Example Usage
-------------
    # Month summary for the default backup (GIGLEDGER_DATA_FILE)
    $ gigledger summary --month 2025-03

    # Hours left today
    $ gigledger -d backup.json hours --date 2025-03-14

    # Weekly schedule with a custom gas price
    $ gigledger simulate --gas-price 3.89
"""

from __future__ import annotations

import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

import click

from . import __version__
from .exceptions import GigLedgerError


def _get_console():
    """Lazy import Rich for better startup time."""
    from rich.console import Console
    return Console()


def _fail(message: str, error: Optional[BaseException] = None) -> None:
    """Report *message* and exit 1; with debug settings, re-raise *error*."""
    ctx = click.get_current_context(silent=True)
    if error is not None and ctx is not None and ctx.obj and ctx.obj["settings"].debug:
        raise error
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _today(ctx: click.Context) -> date:
    return datetime.now(ZoneInfo(ctx.obj["settings"].timezone)).date()


def _load(ctx: click.Context):
    """Backup document named by ``--data-file``."""
    from .serialization import load_backup

    path: Path = ctx.obj["data_file"]
    if not path.exists():
        _fail(f"Backup file not found: {path}")
    try:
        return load_backup(path)
    except GigLedgerError as e:
        _fail(str(e), e)


def _parse_day(value: Optional[str], ctx: click.Context) -> date:
    from .utils import parse_date

    if value is None:
        return _today(ctx)
    day = parse_date(value)
    if day is None:
        raise click.BadParameter(f"not a date: {value!r}")
    return day


@click.group()
@click.version_option(version=__version__, prog_name="gigledger")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--data-file", "-d",
    type=click.Path(path_type=Path),
    default=None,
    help="Backup document (default: GIGLEDGER_DATA_FILE)"
)
@click.pass_context
def main(ctx: click.Context, quiet: bool, data_file: Optional[Path]) -> None:
    """
    GigLedger - earnings and hours tracker for gig drivers.

    Use 'gigledger COMMAND --help' for command-specific help.
    """
    from .config import AppSettings

    settings = AppSettings()
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = _get_console()
    ctx.obj["settings"] = settings
    ctx.obj["data_file"] = data_file or settings.data_file


@main.command()
@click.option("--month", "-m", default=None, help="Month as YYYY-MM (default: current)")
@click.pass_context
def summary(ctx: click.Context, month: Optional[str]) -> None:
    """
    Month summary: income, bills, variable expenses, gas and net.

    Example:
        gigledger summary --month 2025-03
    """
    from rich.table import Table

    from .profit import monthly_net_profit, monthly_summary
    from .utils import date_in_range, format_currency, month_range

    backup = _load(ctx)
    anchor = _parse_day(f"{month}-01" if month else None, ctx)
    card = monthly_summary(
        anchor,
        backup.income_entries,
        backup.fixed_expenses,
        backup.variable_expenses,
        backup.daily_data,
    )
    start, end = month_range(anchor)
    net = monthly_net_profit(
        card.total_income,
        backup.fixed_expenses,
        backup.payment_plans,
        [d for d in backup.daily_data if date_in_range(d.work_date, start, end)],
    )

    table = Table(title=f"Summary {card.month}", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Income", format_currency(card.total_income))
    table.add_row("Bills", format_currency(card.total_bills))
    table.add_row("Variable expenses", format_currency(card.total_variable_expenses))
    table.add_row("Gas", format_currency(card.total_gas_expenses))
    table.add_row("Payment plans due", format_currency(net.payment_plans_minimum_due))
    table.add_row("", "")
    table.add_row("Net", format_currency(card.net))
    table.add_row("Net after plans", format_currency(net.net))
    table.add_row("Miles", f"{card.total_distance:,.1f}")
    ctx.obj["console"].print(table)


@main.command()
@click.option("--date", "day", default=None, help="Target date YYYY-MM-DD (default: today)")
@click.option("--plot", "plot_path", type=click.Path(path_type=Path), default=None,
              help="Save a chart of the last 7 days to this path")
@click.pass_context
def hours(ctx: click.Context, day: Optional[str], plot_path: Optional[Path]) -> None:
    """
    Hours used today and over the trailing 7 days.

    Example:
        gigledger hours --date 2025-03-14
    """
    from .hours import daily_hours_series, hours_remaining_level, hours_used

    backup = _load(ctx)
    target = _parse_day(day, ctx)
    limits = backup.hours_limit_config()
    usage = hours_used(
        backup.income_entries, target, limits.daily_limit_hours, limits.weekly_limit_hours,
        platform=limits.platform,
    )
    level = hours_remaining_level(min(usage.daily_remaining, usage.weekly_remaining))
    style = {"critical": "red", "warning": "yellow"}.get(level, "green")

    console = ctx.obj["console"]
    console.print(f"[bold]Hours on {target.isoformat()}[/bold]")
    console.print(
        f"  Today: {usage.daily_hours_used:.2f}h used, "
        f"[{style}]{usage.daily_remaining:.2f}h left[/{style}] of {limits.daily_limit_hours:g}h"
    )
    console.print(
        f"  7 days: {usage.weekly_hours_used:.2f}h used, "
        f"[{style}]{usage.weekly_remaining:.2f}h left[/{style}] of {limits.weekly_limit_hours:g}h"
    )

    if plot_path:
        import matplotlib.pyplot as plt

        from .plotting import plot_daily_hours

        series = daily_hours_series(backup.income_entries, target, platform=limits.platform)
        fig, _ = plot_daily_hours(
            series, daily_limit_hours=limits.daily_limit_hours,
            save_path=str(plot_path), return_fig_ax=True,
        )
        plt.close(fig)
        if not ctx.obj["quiet"]:
            click.echo(f"Chart saved to {plot_path}")


@main.command()
@click.option("--period", "-p", type=click.Choice(["weekly", "monthly"]), default="monthly",
              help="Goal period (default: monthly)")
@click.pass_context
def goals(ctx: click.Context, period: str) -> None:
    """
    Goal progress, income allocated by priority.

    Example:
        gigledger goals --period weekly
    """
    from rich.table import Table

    from .goals import prioritized_goal_progress
    from .utils import format_currency

    backup = _load(ctx)
    try:
        progress = prioritized_goal_progress(backup.goals, backup.income_entries, period)
    except GigLedgerError as e:
        _fail(str(e), e)

    console = ctx.obj["console"]
    if not progress:
        console.print(f"No active {period} goals.")
        return

    table = Table(title=f"{period.capitalize()} goals", show_header=True)
    table.add_column("Priority", justify="right")
    table.add_column("Goal", style="cyan")
    table.add_column("Progress", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Done", justify="right")
    for p in progress:
        table.add_row(
            str(p.goal.priority),
            p.goal.name,
            format_currency(p.current_amount),
            format_currency(p.goal.target_amount),
            f"{p.percent_complete:.0f}%",
        )
    console.print(table)


@main.command()
@click.option("--month", "-m", default=None, help="Month as YYYY-MM (default: current)")
@click.pass_context
def plans(ctx: click.Context, month: Optional[str]) -> None:
    """
    Payment plan balances and obligations due this month.

    Example:
        gigledger plans --month 2025-03
    """
    from rich.table import Table

    from .expenses import monthly_obligations, plan_remaining
    from .utils import format_currency, month_key

    backup = _load(ctx)
    key = month or month_key(_today(ctx))

    table = Table(title="Payment plans", show_header=True)
    table.add_column("Plan", style="cyan")
    table.add_column("Provider")
    table.add_column("Paid", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Balance", justify="right")
    for plan in backup.payment_plans:
        remaining = plan_remaining(plan)
        table.add_row(
            plan.name,
            plan.provider,
            f"{remaining.payments_made}/{plan.total_payments}",
            str(remaining.remaining_payments),
            format_currency(remaining.remaining_amount),
        )
    console = ctx.obj["console"]
    console.print(table)

    due = monthly_obligations(
        backup.fixed_expenses, backup.payment_plans, backup.payment_plan_payments, key
    )
    console.print(
        f"[bold]{key}[/bold] bills {format_currency(due.fixed_total)}, "
        f"plans due {format_currency(due.payment_plans_minimum_due)}, "
        f"total {format_currency(due.grand_total)}"
    )


@main.command()
@click.option("--config", "-c", "config_file", type=click.Path(path_type=Path), default=None,
              help="Simulator config (default: GIGLEDGER_SIMULATOR_CONFIG_FILE)")
@click.option("--gas-price", type=float, default=None, help="Override price per gallon")
@click.option("--blocks-before-gas", type=int, default=None, help="Override blocks per tank")
@click.option("--save", is_flag=True, help="Persist the effective config")
@click.option("--plot", "plot_path", type=click.Path(path_type=Path), default=None,
              help="Save a chart of the schedule to this path")
@click.pass_context
def simulate(
    ctx: click.Context,
    config_file: Optional[Path],
    gas_price: Optional[float],
    blocks_before_gas: Optional[int],
    save: bool,
    plot_path: Optional[Path],
) -> None:
    """
    Optimal weekly block schedule from historical earnings.

    Example:
        gigledger simulate --gas-price 3.89 --save
    """
    import pydantic
    from rich.table import Table

    from .config import SimulatorConfig, load_simulator_config, save_simulator_config
    from .simulator import run_simulation
    from .utils import format_currency

    backup = _load(ctx)
    path = config_file or ctx.obj["settings"].simulator_config_file
    try:
        config = load_simulator_config(path)
        overrides = {}
        if gas_price is not None:
            overrides["gas_price"] = gas_price
        if blocks_before_gas is not None:
            overrides["blocks_before_gas"] = blocks_before_gas
        if overrides:
            config = SimulatorConfig(**{**config.model_dump(), **overrides})
    except (GigLedgerError, pydantic.ValidationError) as e:
        _fail(f"Invalid simulator config: {e}", e)

    limits = backup.hours_limit_config()
    results = run_simulation(
        backup.income_entries,
        config,
        daily_minutes=int(limits.daily_limit_hours * 60),
        weekly_minutes=int(limits.weekly_limit_hours * 60),
    )

    console = ctx.obj["console"]
    if results.is_empty:
        console.print(f"[yellow]{results.reasoning}[/yellow]")
    else:
        table = Table(title="Weekly schedule", show_header=True)
        table.add_column("Day", style="cyan")
        table.add_column("Blocks")
        table.add_column("Hours", justify="right")
        table.add_column("Earnings", justify="right")
        for day in results.daily_schedule:
            blocks = ", ".join(f"{b.block_length / 60:g}h" for b in day.blocks) or "-"
            table.add_row(day.day_name, blocks, f"{day.total_hours:g}", format_currency(day.earnings))
        console.print(table)

        p = results.weekly_projection
        console.print(
            f"Gross {format_currency(p.gross_earnings)} - gas {format_currency(p.total_gas_cost)} "
            f"({p.gas_fillups_needed} fill-ups) = [bold green]{format_currency(p.net_earnings)}[/bold green]"
        )
        if not ctx.obj["quiet"]:
            console.print(results.reasoning)

    if save:
        save_simulator_config(config, path)
        if not ctx.obj["quiet"]:
            click.echo(f"Config saved to {path}")

    if plot_path:
        import matplotlib.pyplot as plt

        from .plotting import plot_weekly_schedule

        fig, _ = plot_weekly_schedule(results, save_path=str(plot_path), return_fig_ax=True)
        plt.close(fig)
        if not ctx.obj["quiet"]:
            click.echo(f"Chart saved to {plot_path}")


@main.command()
@click.option("--platform", "-p", default="all", help="Restrict to one platform (default: all)")
@click.option("--plot", "plot_path", type=click.Path(path_type=Path), default=None,
              help="Save a heatmap to this path")
@click.pass_context
def trends(ctx: click.Context, platform: str, plot_path: Optional[Path]) -> None:
    """
    Hourly earnings by weekday and time of day.

    Example:
        gigledger trends --platform AmazonFlex --plot trends.png
    """
    from rich.table import Table

    from .trends import calculate_trends, max_hourly_rate

    backup = _load(ctx)
    heatmap = calculate_trends(backup.income_entries, platform)

    table = Table(title="Hourly earnings ($/hr)", show_header=True)
    table.add_column("Day", style="cyan")
    for slot in heatmap.columns:
        table.add_column(slot, justify="right")
    for day, row in heatmap.iterrows():
        table.add_row(day, *[f"{v:.2f}" if v > 0 else "-" for v in row])
    console = ctx.obj["console"]
    console.print(table)
    console.print(f"Best rate: ${max_hourly_rate(heatmap):.2f}/hr")

    if plot_path:
        import matplotlib.pyplot as plt

        from .plotting import plot_trends_heatmap

        fig, _ = plot_trends_heatmap(heatmap, save_path=str(plot_path), return_fig_ax=True)
        plt.close(fig)
        if not ctx.obj["quiet"]:
            click.echo(f"Chart saved to {plot_path}")


@main.command("add-income")
@click.option("--date", "day", required=True, help="Work date YYYY-MM-DD")
@click.option("--amount", "-a", type=float, required=True, help="Amount earned")
@click.option("--minutes", type=int, default=None, help="Block length in minutes")
@click.option("--start", default=None, help="Block start (ISO timestamp)")
@click.option("--end", default=None, help="Block end (ISO timestamp)")
@click.option("--platform", "-p", default="AmazonFlex", help="Platform (default: AmazonFlex)")
@click.option("--custom-name", default=None, help="Platform name when --platform Other")
@click.option("--notes", default="", help="Free-text notes")
@click.pass_context
def add_income(
    ctx: click.Context,
    day: str,
    amount: float,
    minutes: Optional[int],
    start: Optional[str],
    end: Optional[str],
    platform: str,
    custom_name: Optional[str],
    notes: str,
) -> None:
    """
    Record a worked block and write the backup back.

    The entry is rejected if it would break the daily or 7-day hour cap.

    Example:
        gigledger add-income --date 2025-03-14 --amount 92 --minutes 240
    """
    from .serialization import dump_backup
    from .store import LedgerStore
    from .utils import calculate_missing_time

    backup = _load(ctx)
    store = LedgerStore()
    try:
        store.load_backup(backup)
    except GigLedgerError as e:
        _fail(str(e), e)

    times = calculate_missing_time(start, end, minutes, "length" if minutes is not None else "end")
    result = store.add_income_entry(
        {
            "date": day,
            "amount": amount,
            "platform": platform,
            "custom_platform_name": custom_name,
            "block_start_time": times.start,
            "block_end_time": times.end,
            "block_length": times.length,
            "notes": notes,
        }
    )
    if not result.ok:
        _fail(str(result.error), result.error)

    dump_backup(store.to_backup(), ctx.obj["data_file"])
    if not ctx.obj["quiet"]:
        click.echo(f"Saved entry {result.value.id} ({result.value.duration_minutes} min)")


@main.command()
@click.argument("backup_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def validate(ctx: click.Context, backup_file: Path) -> None:
    """
    Validate a backup document.

    Example:
        gigledger validate gigledger-backup.json
    """
    from rich.panel import Panel

    from .serialization import load_backup

    try:
        backup = load_backup(backup_file)
    except GigLedgerError as e:
        if ctx.obj["settings"].debug:
            raise
        click.echo(f"Backup validation failed: {e}", err=True)
        sys.exit(1)

    console = ctx.obj["console"]
    if ctx.obj["quiet"]:
        click.echo("Backup is valid")
        return
    info = (
        f"[bold]Backup Valid[/bold]\n\n"
        f"Exported: {backup.export_date or 'unknown'}\n"
        f"Income entries: {len(backup.income_entries)}\n"
        f"Daily records: {len(backup.daily_data)}\n"
        f"Fixed expenses: {len(backup.fixed_expenses)}\n"
        f"Variable expenses: {len(backup.variable_expenses)}\n"
        f"Payment plans: {len(backup.payment_plans)}\n"
        f"Plan payments: {len(backup.payment_plan_payments)}\n"
        f"Goals: {len(backup.goals)}"
    )
    console.print(Panel(info, title="Backup Summary", border_style="green"))


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display system and package information.

    Shows version numbers, installed dependencies, and
    the effective settings.
    """
    from importlib.metadata import PackageNotFoundError, version

    from rich.panel import Panel

    settings = ctx.obj["settings"]
    info_lines = [
        f"GigLedger Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]
    for name in ("numpy", "pandas", "pydantic", "pydantic-settings", "matplotlib", "rich", "click"):
        try:
            info_lines.append(f"{name}: {version(name)}")
        except PackageNotFoundError:
            info_lines.append(f"{name}: not installed")
    info_lines.append("")
    info_lines.append(f"Data file: {ctx.obj['data_file']}")
    info_lines.append(f"Simulator config: {settings.simulator_config_file}")
    info_lines.append(f"Timezone: {settings.timezone}")
    info_lines.append(f"Debug: {settings.debug}")

    ctx.obj["console"].print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()
