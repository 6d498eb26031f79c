"""CLI commands for the application."""
import json

import click
from flask import current_app
from flask.cli import with_appcontext

from crystalbudget.core.config import EngineSettings
from crystalbudget.core.events import Diagnostics
from crystalbudget.core.money import format_amount
from crystalbudget.core.time import YearMonth, parse_year_month
from crystalbudget.modules.budget import (
    compute_rollovers, distribute_with_rounding, validate_budget_consistency,
)
from crystalbudget.modules.budget.rounding import Share
from crystalbudget.modules.budget.schemas import BudgetPayload
from crystalbudget.modules.budget.service import BudgetService, InMemoryBudgetRepository


def _load_payload(payload_file):
    """Read and validate an engine payload from an open JSON file."""
    try:
        data = json.load(payload_file)
        return BudgetPayload.validate(data, default_currency=current_app.config.get('DEFAULT_CURRENCY', 'RUB'))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON: {e}")
    except ValueError as e:
        raise click.ClickException(f"Invalid payload: {e}")


@click.group('budget')
def budget_cli():
    """Budget calculation commands."""
    pass


@budget_cli.command('snapshot')
@click.argument('payload_file', type=click.File('r', encoding='utf-8'))
@click.option('--ym', help='Year-Month (YYYY-MM), defaults to payload or current')
@click.option('--diagnostics', 'show_diagnostics', is_flag=True, help='Print engine diagnostics')
@with_appcontext
def snapshot(payload_file, ym, show_diagnostics):
    """Calculate budget snapshot for a month from a JSON payload."""
    payload = _load_payload(payload_file)
    try:
        year_month = parse_year_month(ym) if ym else (payload['year_month'] or YearMonth.current())
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--ym')

    repository = InMemoryBudgetRepository(
        income_sources=payload['income_sources'],
        categories=payload['categories'],
        incomes=payload['incomes'],
        expenses=payload['expenses'],
        user_currency=payload['user_currency'],
    )
    diagnostics = Diagnostics() if show_diagnostics else None
    service = BudgetService(repository, EngineSettings.from_config(current_app.config))
    result = service.calculate_month_snapshot(year_month, diagnostics=diagnostics)

    names = {category.id: category.name for category in payload['categories']}
    click.echo(f"✓ Budget for {year_month.format_ru()} ({year_month})")
    if result.carry_over_balance:
        click.echo(f"  Balance brought forward: {format_amount(result.carry_over_balance, result.user_currency)}")
    for budget in result.categories:
        click.echo(f"  {names.get(budget.category_id, budget.category_id)}:")
        for currency, item in (budget.budgets_by_currency or {}).items():
            status = ' ⚠ over budget' if item.is_over_budget else ''
            orphaned = ' (orphaned source)' if item.orphaned else ''
            click.echo(
                f"    {currency}: allocated {format_amount(item.allocated, currency)}, "
                f"spent {format_amount(item.spent, currency)}, "
                f"remaining {format_amount(item.remaining, currency)}{status}{orphaned}"
            )

    for message in result.validation.errors:
        click.echo(f"  ✗ {message}")
    for message in result.validation.warnings:
        click.echo(f"  ! {message}")

    if diagnostics is not None:
        for event in diagnostics.to_list():
            click.echo(f"  [{event['event_type']}] {event['data']}")


@budget_cli.command('rollover')
@click.argument('payload_file', type=click.File('r', encoding='utf-8'))
@with_appcontext
def rollover(payload_file):
    """Show debt and carry-over from a prior-period JSON payload."""
    payload = _load_payload(payload_file)
    result = compute_rollovers(
        payload['categories'], payload['incomes'], payload['expenses'], payload['income_sources'],
        user_currency=payload['user_currency'],
    )

    if not result.debt_map and not result.carry_over_map:
        click.echo("No carry-over or debt")
        return

    for category_id, amounts in result.carry_over_map.items():
        for currency, amount in amounts.items():
            click.echo(f"  carry-over {category_id} {format_amount(amount, currency)}")
    for category_id, amounts in result.debt_map.items():
        for currency, amount in amounts.items():
            click.echo(f"  debt {category_id} {format_amount(amount, currency)}")


@budget_cli.command('validate')
@click.argument('payload_file', type=click.File('r', encoding='utf-8'))
@with_appcontext
def validate(payload_file):
    """Check that allocations fit the available income."""
    payload = _load_payload(payload_file)
    result = validate_budget_consistency(
        payload['categories'], payload['income_sources'], payload['incomes'],
        user_currency=payload['user_currency'],
        settings=EngineSettings.from_config(current_app.config),
    )

    for message in result.errors:
        click.echo(f"✗ {message}")
    for message in result.warnings:
        click.echo(f"! {message}")
    if result.is_valid:
        click.echo("✓ Budget is consistent")
    else:
        raise SystemExit(1)


def _parse_share(ctx, param, values):
    shares = []
    for value in values:
        share_id, sep, weight = value.partition('=')
        if not sep or not share_id:
            raise click.BadParameter(f"expected ID=PERCENT, got {value!r}")
        shares.append(Share(share_id, weight))
    return shares


@budget_cli.command('distribute')
@click.option('--total', required=True, help='Total amount to distribute')
@click.option('--share', 'shares', multiple=True, callback=_parse_share, help='Share as ID=PERCENT')
@with_appcontext
def distribute(total, shares):
    """Split a total across shares using the largest remainder method."""
    settings = EngineSettings.from_config(current_app.config)
    for item in distribute_with_rounding(shares, total, tolerance=settings.rounding_tolerance):
        click.echo(f"{item.id}: {item.amount}")


def register_cli_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(budget_cli)
