"""Command-line interface for PM Analytics.

Loads a record snapshot (JSON or YAML) and renders project analytics,
dashboards, team performance and reports as rich tables, JSON or CSV.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import get_config, load_config, save_config
from .errors import AnalyticsError, InvalidArgumentError
from .services.export import ExportFormat, export_payload
from .services.project_analytics import DashboardAnalytics, ProjectAnalytics, ProjectAnalyzer
from .services.reports import (
    GeneratedReport, ReportGenerator, parse_date_range, parse_report_date,
)
from .services.team_analytics import TeamAnalytics, TeamAnalyzer
from .storage import RecordSource, load_snapshot
from .utils.datetime import end_of_day, parse_datetime, start_of_day

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ['text', 'json', 'csv']

RISK_STYLES = {
    'Low': 'green',
    'Medium': 'yellow',
    'High': 'red',
    'Critical': 'bold red',
}


def get_console() -> Console:
    return Console()


def configure_logging(verbose: bool, level: str) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _parse_now(value: Optional[str]):
    if not value:
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        raise click.BadParameter(f"Invalid datetime: {value}", param_hint="--now")


def _get_source(ctx: click.Context) -> RecordSource:
    """Load the snapshot once per invocation."""
    if ctx.obj.get('source') is None:
        path = ctx.obj['data_path']
        try:
            ctx.obj['source'] = load_snapshot(path)
        except AnalyticsError as e:
            raise click.ClickException(str(e))
    return ctx.obj['source']


def _emit(content: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(content, encoding="utf-8")
        click.echo(f"Wrote {output}")
    else:
        click.echo(content, nl=not content.endswith("\n"))


def _format_date(value: Any) -> str:
    """Render a date or ISO string with the configured ``date_format``."""
    if isinstance(value, str):
        value = parse_datetime(value)
    return value.strftime(get_config().date_format)


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _summary_table(title: str, fields: Dict[str, Any]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("Metric", style="cyan", min_width=20)
    table.add_column("Value", style="white")
    for key, value in fields.items():
        if isinstance(value, list):
            value = "\n".join(str(v) for v in value) or "-"
        table.add_row(key.replace('_', ' ').title(), _fmt(value))
    return table


def _render_project(analytics: ProjectAnalytics) -> None:
    console = get_console()
    risk = analytics.insights.risk_assessment
    style = RISK_STYLES.get(risk.level.value, 'white')

    console.print(Panel(
        f"[bold]{analytics.project.name}[/bold]\n"
        f"Status: {analytics.project_summary()['status']}  "
        f"Progress: {analytics.project.progress:g}%\n"
        f"Predicted completion: {_format_date(analytics.insights.completion_prediction)}\n"
        f"Risk: [{style}]{risk.score} ({risk.level.value})[/{style}]",
        title="📊 Project Analytics",
    ))
    for factor in risk.factors:
        console.print(f"  [yellow]⚠️  {factor}[/yellow]")

    console.print(_summary_table("Task Status", analytics.metrics.tasks.by_status))

    team = Table(title="👥 Team Performance", show_header=True, header_style="bold blue")
    team.add_column("Member", style="cyan", min_width=15)
    team.add_column("Assigned", justify="right")
    team.add_column("Completed", justify="right")
    team.add_column("Rate", justify="right")
    team.add_column("Hours", justify="right")
    for member in analytics.team:
        team.add_row(
            member.full_name or member.user_id,
            str(member.tasks_assigned),
            str(member.tasks_completed),
            f"{member.completion_rate:.1f}%",
            f"{member.total_hours:.1f}",
        )
    console.print(team)

    for rec in analytics.insights.resource_recommendations:
        console.print(f"  💡 [{rec.priority.value}] {rec.message}")


def _render_dashboard(dashboard: DashboardAnalytics) -> None:
    console = get_console()
    console.print(_summary_table("📋 Overview", dashboard.overview))
    console.print(_summary_table("📈 Productivity", dashboard.productivity))
    console.print(_summary_table("💰 Financial", dashboard.financial))

    table = Table(title="🚨 High Risk Projects", show_header=True, header_style="bold red")
    table.add_column("Project", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Level")
    for item in dashboard.high_risk_projects:
        level = item.risk_assessment.level.value
        style = RISK_STYLES.get(level, 'white')
        table.add_row(item.project_name, str(item.risk_assessment.score), f"[{style}]{level}[/{style}]")
    console.print(table)

    deadlines = Table(title="⏰ Upcoming Deadlines", show_header=True, header_style="bold blue")
    deadlines.add_column("Project", style="cyan")
    deadlines.add_column("End Date")
    deadlines.add_column("Days Left", justify="right")
    for item in dashboard.upcoming_deadlines:
        deadlines.add_row(item['name'], _format_date(item['end_date']), str(item['days_remaining']))
    console.print(deadlines)


def _render_team(team: TeamAnalytics) -> None:
    console = get_console()
    table = Table(title="👥 Team Performance", show_header=True, header_style="bold blue")
    for column in ("Member", "Department", "Tasks", "Done", "Rate", "On Time", "Efficiency"):
        table.add_column(column, justify="left" if column in ("Member", "Department") else "right")
    for member in team.members:
        table.add_row(
            member.user.display_name,
            member.department,
            str(member.total_tasks),
            str(member.completed_tasks),
            f"{member.completion_rate:.1f}%",
            f"{member.on_time_rate:.1f}%",
            f"{member.efficiency:.1f}%",
        )
    console.print(table)
    console.print(_summary_table("Team Averages", team.team_averages()))


def _render_report(report: GeneratedReport) -> None:
    console = get_console()
    payload = report.payload
    title = (f"{report.report_type.value.replace('_', ' ').title()} "
             f"({_format_date(report.start_date)} → {_format_date(report.end_date)})")
    console.print(_summary_table(title, payload.summary_fields()))

    rows = payload.detail_rows()
    if not rows:
        console.print("[yellow]No records in range.[/yellow]")
        return
    table = Table(show_header=True, header_style="bold blue")
    for column in payload.detail_columns:
        table.add_column(column.replace('_', ' ').title())
    for row in rows:
        table.add_row(*[_fmt(row.get(column, '')) for column in payload.detail_columns])
    console.print(table)


def _output(payload: Any, fmt: str, output: Optional[str], render) -> None:
    if fmt == 'text':
        render(payload)
        return
    _emit(export_payload(payload, ExportFormat(fmt)), output)


@click.group()
@click.version_option(__version__, prog_name="pm-analytics")
@click.option('--data', '-d', 'data_path', type=click.Path(dir_okay=False),
              help='Record snapshot file (JSON or YAML)')
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx: click.Context, data_path: Optional[str], config_path: Optional[str], verbose: bool):
    """Project analytics: forecasts, risk scoring, recommendations and reports."""
    config = load_config(Path(config_path)) if config_path else get_config()
    configure_logging(verbose, config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['config'] = config
    ctx.obj['data_path'] = data_path or str(config.get_snapshot_path())
    ctx.obj.setdefault('source', None)


@cli.command(name='project')
@click.argument('project_id')
@click.option('--format', '-f', 'fmt', type=click.Choice(OUTPUT_FORMATS), default='text',
              help='Output format')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write to file')
@click.option('--now', help='Reference time (ISO 8601) for reproducible output')
@click.pass_context
def project_command(ctx, project_id: str, fmt: str, output: Optional[str], now: Optional[str]):
    """Analytics for a single project."""
    source = _get_source(ctx)
    try:
        analytics = ProjectAnalyzer(ctx.obj['config']).analyze_project_by_id(
            source, project_id, _parse_now(now))
    except AnalyticsError as e:
        raise click.ClickException(str(e))
    _output(analytics, fmt, output, _render_project)


@cli.command(name='dashboard')
@click.argument('user_id')
@click.option('--format', '-f', 'fmt', type=click.Choice(OUTPUT_FORMATS), default='text',
              help='Output format')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write to file')
@click.option('--now', help='Reference time (ISO 8601) for reproducible output')
@click.pass_context
def dashboard_command(ctx, user_id: str, fmt: str, output: Optional[str], now: Optional[str]):
    """Portfolio dashboard for a user."""
    source = _get_source(ctx)
    try:
        dashboard = ProjectAnalyzer(ctx.obj['config']).dashboard(source, user_id, _parse_now(now))
    except AnalyticsError as e:
        raise click.ClickException(str(e))
    _output(dashboard, fmt, output, _render_dashboard)


@cli.command(name='team')
@click.option('--department', help='Restrict to one department')
@click.option('--start-date', help='Only tasks created on or after this date')
@click.option('--end-date', help='Only tasks created on or before this date')
@click.option('--format', '-f', 'fmt', type=click.Choice(OUTPUT_FORMATS), default='text',
              help='Output format')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write to file')
@click.option('--now', help='Reference time (ISO 8601) for reproducible output')
@click.pass_context
def team_command(ctx, department, start_date, end_date, fmt, output, now):
    """Team performance across active users."""
    source = _get_source(ctx)
    try:
        if start_date and end_date:
            first, last = parse_date_range(start_date, end_date)
        else:
            first = parse_report_date(start_date, "start_date") if start_date else None
            last = parse_report_date(end_date, "end_date") if end_date else None
    except InvalidArgumentError as e:
        raise click.BadParameter(str(e), param_hint="--start-date/--end-date")
    start = start_of_day(first) if first else None
    end = end_of_day(last) if last else None
    team = TeamAnalyzer().analyze_source(source, department, start, end, _parse_now(now))
    _output(team, fmt, output, _render_team)


@cli.command(name='report')
@click.argument('report_type')
@click.option('--start-date', required=True, help='First day of the range (ISO 8601)')
@click.option('--end-date', required=True, help='Last day of the range (ISO 8601)')
@click.option('--format', '-f', 'fmt', type=click.Choice(OUTPUT_FORMATS), default=None,
              help='Output format (defaults to the configured format)')
@click.option('--output', '-o', type=click.Path(), help='Write to file, or into a directory '
              'using the {report_type}_{start}_{end} naming convention')
@click.pass_context
def report_command(ctx, report_type: str, start_date: str, end_date: str,
                   fmt: Optional[str], output: Optional[str]):
    """Generate a project_summary, team_performance or financial_summary report."""
    fmt = fmt or ctx.obj['config'].default_format
    export_format = 'json' if fmt == 'text' else fmt
    try:
        generator = ReportGenerator(_LazySource(ctx))
        report = generator.generate(report_type, start_date, end_date, export_format)
    except AnalyticsError as e:
        raise click.ClickException(str(e))

    if fmt == 'text':
        _render_report(report)
        return
    if output and Path(output).is_dir():
        output = str(Path(output) / report.filename)
    _emit(report.render(), output)


@cli.command(name='config')
@click.option('--init', 'init_path', type=click.Path(dir_okay=False),
              help='Write the current configuration to this file')
@click.pass_context
def config_command(ctx, init_path: Optional[str]):
    """Show the effective configuration."""
    config = ctx.obj['config']
    if init_path:
        path = save_config(config, Path(init_path))
        click.echo(f"Configuration saved to {path}")
        return
    click.echo(config.to_yaml(), nl=False)


class _LazySource(RecordSource):
    """Defers snapshot loading until a report actually reads records."""

    def __init__(self, ctx: click.Context):
        self._ctx = ctx

    def _source(self) -> RecordSource:
        return _get_source(self._ctx)

    def get_project(self, project_id):
        return self._source().get_project(project_id)

    def get_user(self, user_id):
        return self._source().get_user(user_id)

    def list_projects(self, created_from=None, created_to=None):
        return self._source().list_projects(created_from, created_to)

    def list_tasks(self, project_ids=None, assignee_ids=None, created_from=None, created_to=None):
        return self._source().list_tasks(project_ids, assignee_ids, created_from, created_to)

    def list_users(self, roles=None, active_only=False, department=None):
        return self._source().list_users(roles, active_only, department)


def main():
    """Entry point for the pm-analytics console script."""
    cli(obj={})


if __name__ == '__main__':
    main()
