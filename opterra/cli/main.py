# -*- coding: utf-8 -*-
"""
Opterra CLI
===========

Command-line front end for the water-heater risk engine.

Usage:
    opterra assess unit.yaml
    opterra assess unit.json --format json --schedule --projection
    opterra assess unit.yaml --financial --as-of 2026-10-19
    opterra project unit.yaml --months 12 --months 60
    opterra simulate unit.yaml --repair flush --repair anode
    opterra repairs unit.yaml
    opterra version

Input files hold ForensicInputs fields as JSON (``.json``) or YAML
(``.yaml`` / ``.yml``).
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from opterra._version import __version__
from opterra.exceptions import OpterraException
from opterra.risk.config import OpterraRiskConfig, get_config
from opterra.risk.models import (
    ALGORITHM_VERSION,
    FinancialForecast,
    ForensicInputs,
    HardWaterTax,
    MaintenanceSchedule,
    OpterraResult,
    ProjectedHealth,
    SimulatedResult,
    SoftenerRecommendation,
)
from opterra.risk.pipeline import OpterraRiskEngine

app = typer.Typer(
    name="opterra",
    help="Opterra: water heater risk assessment",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()

_ACTION_STYLE = {
    "REPLACE": "bold red",
    "REPAIR": "bold yellow",
    "UPGRADE": "bold blue",
    "MAINTAIN": "bold cyan",
    "PASS": "bold green",
}

# Badge colours that are not rich colour names.
_RICH_COLORS = {"orange": "dark_orange"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _configure_logging(config: OpterraRiskConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_payload(input_file: Path) -> Dict[str, Any]:
    if not input_file.exists():
        console.print(f"[red]Input file not found: {input_file}[/red]")
        raise typer.Exit(1)

    suffix = input_file.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml"):
        console.print(f"[red]Unsupported input format: {input_file.suffix}[/red]")
        console.print("[yellow]Use .json or .yaml files[/yellow]")
        raise typer.Exit(1)

    try:
        with open(input_file, encoding="utf-8") as f:
            data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {input_file.name}: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except yaml.YAMLError as e:
        console.print(f"[red]Invalid YAML in {input_file.name}: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not isinstance(data, dict):
        console.print("[red]Input file must contain a mapping of forensic fields[/red]")
        raise typer.Exit(1)
    return data


def _engine() -> OpterraRiskEngine:
    return OpterraRiskEngine(get_config())


def _load(input_file: Path, engine: OpterraRiskEngine) -> ForensicInputs:
    payload = _load_payload(input_file)
    try:
        return engine.parse_inputs(payload)
    except OpterraException as e:
        console.print(f"[red]{e.message}[/red]")
        for field, reason in e.context.get("invalid_fields", {}).items():
            console.print(f"  - [cyan]{field}[/cyan]: {reason}")
        raise typer.Exit(1)


def _resolve_format(output_format: Optional[str]) -> str:
    fmt = (output_format or get_config().output_format).lower()
    if fmt not in ("table", "json"):
        console.print(f"[red]Unknown output format: {output_format}[/red]")
        raise typer.Exit(2)
    return fmt


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_result(result: OpterraResult) -> None:
    m, v = result.metrics, result.verdict
    style = _ACTION_STYLE.get(v.action.value, "bold")
    console.print(Panel(
        f"[{style}]{v.action.value}[/{style}]  {v.title}\n\n{v.detail}",
        title=f"Verdict ({v.badge.value})",
        border_style=_RICH_COLORS.get(v.badge_color, v.badge_color),
    ))

    table = Table(box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Unit type", m.unit_type.value)
    table.add_row("Calendar age", f"{m.calendar_age:.1f} yrs")
    table.add_row("Biological age", f"{m.bio_age:.1f} yrs")
    table.add_row("Aging rate", f"{m.aging_rate:.2f}x")
    table.add_row("Failure probability", f"{m.fail_prob:.1f}%")
    table.add_row("Health score", f"{m.health_score} ({m.health_band.value})")
    table.add_row("Risk level", str(m.risk_level))
    table.add_row("Primary stressor", m.primary_stressor)
    if m.flush_status is not None:
        table.add_row("Sediment", f"{m.sediment_lbs:.1f} lbs ({m.flush_status.value})")
    if m.shield_life is not None:
        table.add_row("Anode shield life", f"{m.shield_life:.1f} yrs")
    if m.descale_status is not None:
        table.add_row("Scale buildup", f"{m.scale_buildup_score:.0f}% ({m.descale_status.value})")
    if m.hybrid_efficiency is not None:
        table.add_row("Heat pump efficiency", f"{m.hybrid_efficiency:.0f}%")
    console.print(table)

    if result.infrastructure_issues:
        issues = Table(title="Infrastructure", box=box.SIMPLE)
        issues.add_column("Category")
        issues.add_column("Issue")
        issues.add_column("Cost", justify="right")
        for issue in result.infrastructure_issues:
            color = "red" if issue.is_violation else "yellow"
            issues.add_row(
                f"[{color}]{issue.category.value}[/{color}]",
                issue.friendly_name,
                f"${issue.cost_min:,}-${issue.cost_max:,}",
            )
        console.print(issues)

    if result.provenance_hash:
        console.print(
            f"[dim]{result.algorithm_version}  provenance {result.provenance_hash[:16]}[/dim]"
        )


def _render_hard_water(tax: HardWaterTax) -> None:
    if tax.recommendation == SoftenerRecommendation.NONE:
        return
    color = _RICH_COLORS.get(tax.badge_color, tax.badge_color)
    lines = [
        f"[{color}]{tax.recommendation.value}[/{color}]  {tax.reason}",
        "",
        f"Annual loss: ${tax.total_annual_loss:,} at {tax.effective_hardness_gpg:.1f} GPG",
    ]
    if tax.has_softener:
        lines.append(f"Protected: ${tax.protected_amount:,}/yr")
    elif tax.payback_years is not None:
        lines.append(
            f"Softener saves ${tax.net_annual_savings:,}/yr, "
            f"pays back in {tax.payback_years:.1f} yrs"
        )
    if tax.element_burnout_risk is not None:
        lines.append(f"Element burnout risk: {tax.element_burnout_risk}%")
    console.print(Panel("\n".join(lines), title="Hard water tax", border_style=color))


def _render_financial(plan: FinancialForecast) -> None:
    table = Table(title=f"Replacement budget (as of {plan.as_of.isoformat()})", box=box.SIMPLE)
    table.add_column("", style="cyan")
    table.add_column("", justify="right")
    table.add_row("Target date", plan.target_replacement_date.isoformat())
    table.add_row("Months to target", str(plan.months_until_target))
    table.add_row(
        "Estimated cost",
        f"${plan.est_replacement_cost:,} "
        f"(${plan.est_replacement_cost_min:,}-${plan.est_replacement_cost_max:,})",
    )
    table.add_row("Monthly budget", f"${plan.monthly_budget:,}")
    table.add_row("Urgency", plan.budget_urgency.value)
    table.add_row("Current tier", f"{plan.current_tier.tier_label} (${plan.like_for_like_cost:,})")
    if plan.upgrade_value_prop:
        table.add_row("Upgrade", plan.upgrade_value_prop)
    console.print(table)
    console.print(f"[bold]{plan.recommendation}[/bold]")


def _parse_as_of(as_of: Optional[str]) -> date:
    if as_of is None:
        return date.today()
    try:
        return date.fromisoformat(as_of)
    except ValueError:
        console.print(f"[red]Invalid --as-of date: {escape(as_of)}[/red]")
        console.print("[yellow]Use YYYY-MM-DD[/yellow]")
        raise typer.Exit(2)


def _render_schedule(schedule: MaintenanceSchedule) -> None:
    tasks = schedule.all_tasks
    if not tasks:
        console.print("[dim]No maintenance scheduled.[/dim]")
        return
    table = Table(title="Maintenance", box=box.SIMPLE)
    table.add_column("Task")
    table.add_column("Due (months)", justify="right")
    table.add_column("Urgency")
    for task in tasks:
        table.add_row(task.label, str(task.months_until_due), task.urgency.value)
    console.print(table)
    if schedule.is_bundled:
        console.print(f"[cyan]Bundled:[/cyan] {schedule.bundle_reason}")
    if schedule.monitor_only:
        console.print("[yellow]Monitor only: flushing is not recommended for this tank.[/yellow]")


def _render_projection(points: List[ProjectedHealth]) -> None:
    table = Table(title="Projection", box=box.SIMPLE)
    table.add_column("Months", justify="right")
    table.add_column("Bio age", justify="right")
    table.add_column("Failure %", justify="right")
    table.add_column("Health", justify="right")
    for p in points:
        table.add_row(str(p.months), f"{p.bio_age:.1f}", f"{p.fail_prob:.1f}", str(p.health_score))
    console.print(table)


def _render_simulation(before: OpterraResult, after: SimulatedResult) -> None:
    m = before.metrics
    table = Table(title="Repair simulation", box=box.ROUNDED)
    table.add_column("")
    table.add_column("Now", justify="right")
    table.add_column("After", justify="right")
    table.add_row("Health score", str(m.health_score), str(after.new_score))
    table.add_row("Failure probability", f"{m.fail_prob:.1f}%", f"{after.new_failure_prob:.1f}%")
    table.add_row("Aging rate", f"{m.aging_rate:.2f}x", f"{after.new_aging_factor:.2f}x")
    console.print(table)
    console.print(
        f"Status: [bold]{after.new_status.value}[/bold]  "
        f"Cost: ${after.total_cost_min:,}-${after.total_cost_max:,}"
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity to stderr"),
):
    """
    Opterra - water heater risk assessment
    """
    if verbose:
        _configure_logging(get_config())


@app.command()
def assess(
    input_file: Path = typer.Argument(..., help="Forensic inputs (.json or .yaml)"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="table or json"),
    schedule: bool = typer.Option(False, "--schedule", help="Include the maintenance schedule"),
    projection: bool = typer.Option(False, "--projection", help="Include health projections"),
    financial: bool = typer.Option(False, "--financial", help="Include the replacement budget plan"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Budget plan date, YYYY-MM-DD (default: today)"),
):
    """Assess a water heater"""
    engine = _engine()
    inputs = _load(input_file, engine)
    fmt = _resolve_format(output_format)
    plan_date = _parse_as_of(as_of) if financial else None

    result = engine.assess(inputs, as_of=plan_date)
    plan = engine.schedule(inputs, result) if schedule else None
    points = engine.project(inputs, result=result) if projection else None

    if fmt == "json":
        data: Dict[str, Any] = {"result": result.model_dump(mode="json")}
        if plan is not None:
            data["schedule"] = plan.model_dump(mode="json")
            data["infrastructure_tasks"] = [
                t.model_dump(mode="json") for t in engine.infrastructure_tasks(inputs, result)
            ]
        if points is not None:
            data["projection"] = [p.model_dump(mode="json") for p in points]
        _echo_json(data)
        return

    _render_result(result)
    if result.hard_water_tax is not None:
        _render_hard_water(result.hard_water_tax)
    if result.financial is not None:
        _render_financial(result.financial)
    if plan is not None:
        violations = engine.infrastructure_tasks(inputs, result)
        for task in violations:
            console.print(f"[red]CODE VIOLATION[/red] {task.label}: {task.why_explanation}")
        _render_schedule(plan)
    if points is not None:
        _render_projection(points)


@app.command()
def project(
    input_file: Path = typer.Argument(..., help="Forensic inputs (.json or .yaml)"),
    months: Optional[List[int]] = typer.Option(None, "--months", "-m", help="Horizon in months (repeatable)"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="table or json"),
):
    """Project future health"""
    engine = _engine()
    inputs = _load(input_file, engine)
    fmt = _resolve_format(output_format)

    points = engine.project(inputs, horizons=months or None)
    if fmt == "json":
        _echo_json([p.model_dump(mode="json") for p in points])
    else:
        _render_projection(points)


@app.command()
def simulate(
    input_file: Path = typer.Argument(..., help="Forensic inputs (.json or .yaml)"),
    repair: List[str] = typer.Option([], "--repair", "-r", help="Repair id (repeatable)"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="table or json"),
):
    """Simulate the effect of repairs"""
    engine = _engine()
    inputs = _load(input_file, engine)
    fmt = _resolve_format(output_format)

    result = engine.assess(inputs)
    try:
        after = engine.simulate(inputs, repair, result)
    except OpterraException as e:
        console.print(f"[red]{e.message}[/red]")
        known = e.context.get("known_ids")
        if known:
            console.print(f"[yellow]Known repairs: {', '.join(known)}[/yellow]")
        raise typer.Exit(1)

    if fmt == "json":
        _echo_json(after.model_dump(mode="json"))
    else:
        _render_simulation(result, after)


@app.command()
def repairs(
    input_file: Path = typer.Argument(..., help="Forensic inputs (.json or .yaml)"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="table or json"),
):
    """List repairs that apply to a unit"""
    engine = _engine()
    inputs = _load(input_file, engine)
    fmt = _resolve_format(output_format)

    options = engine.available_repairs(inputs)
    if fmt == "json":
        _echo_json([o.model_dump(mode="json") for o in options])
        return

    if not options:
        console.print("[green]No repairs needed.[/green]")
        return
    table = Table(title="Available repairs", box=box.SIMPLE)
    table.add_column("ID", style="cyan")
    table.add_column("Repair")
    table.add_column("Cost", justify="right")
    for option in options:
        table.add_row(option.id, option.name, f"${option.cost_min:,}-${option.cost_max:,}")
    console.print(table)


@app.command()
def version():
    """Show Opterra version"""
    console.print(f"[bold green]Opterra v{__version__}[/bold green]")
    console.print(f"Algorithm: {ALGORITHM_VERSION}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
