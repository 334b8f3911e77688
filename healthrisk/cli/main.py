"""
HealthRisk CLI

Command-line access to identifier resolution and the dashboard aggregates
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core import HealthRiskError, get_config, get_logger
from ..dashboard import DashboardService

app = typer.Typer(
    name="healthrisk",
    help="HealthRisk - provincial disease surveillance statistics",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__)

StartOption = typer.Option(None, "--start", "--start-date", help="Start date (YYYY-MM-DD, inclusive)")
EndOption = typer.Option(None, "--end", "--end-date", help="End date (YYYY-MM-DD, inclusive)")
DiseaseOption = typer.Option(None, "--disease", "-d", help="Disease code or name (D01, 1, Influenza)")
DiseaseIdOption = typer.Option(None, "--disease-id", help="Disease id; overrides --disease")
JsonOption = typer.Option(False, "--json", help="Print JSON instead of a table")


def _run(work: Callable[[DashboardService], Awaitable[Any]]) -> Any:
    """
    Run one request against a fresh service

    Known errors are reported as-is; anything else is logged with its
    traceback and reported as a generic failure.
    """

    async def _main():
        service = DashboardService.create()
        try:
            return await work(service)
        finally:
            await service.close()

    try:
        return asyncio.run(_main())
    except HealthRiskError as e:
        logger.warning(f"Request failed: {e}")
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)
    except Exception:
        logger.exception("Unexpected failure")
        console.print("[bold red]✗ Internal error, see logs for details[/bold red]")
        raise typer.Exit(2)


def _dump(value: Any) -> Any:
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def _emit(value: Any, as_json: bool, title: str) -> None:
    data = _dump(value)
    if as_json or not data:
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    rows = data if isinstance(data, list) else [data]
    table = Table(title=title, show_header=True, header_style="bold magenta")
    columns = list(rows[0].keys())
    for name in columns:
        table.add_column(name, style="cyan" if name == columns[0] else "white")
    for row in rows:
        table.add_row(*(str(row.get(name, "")) for name in columns))
    console.print(table)


def _request(disease, disease_id, start, end) -> dict:
    return {"disease": disease, "disease_id": disease_id, "start_date": start, "end_date": end}


@app.command()
def version():
    """Show version"""
    from .. import __version__
    console.print(f"[bold cyan]HealthRisk[/bold cyan] [green]v{__version__}[/green]")


@app.command()
def config():
    """Show the active configuration"""
    cfg = get_config()

    table = Table(title="HealthRisk configuration", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan", width=30)
    table.add_column("Value", style="white")

    table.add_row("App name", cfg.app_name)
    table.add_row("Version", cfg.version)
    table.add_row("Environment", cfg.app_env)
    table.add_row("Log level", cfg.log_level)
    table.add_row("", "")
    table.add_row("Database", cfg.database.url.split("@")[-1])
    table.add_row("Cache", f"{cfg.cache.backend} (ttl {cfg.cache.ttl_seconds}s)" if cfg.cache.enabled else "disabled")
    table.add_row("Default fact table", cfg.fact_tables.default_table)
    table.add_row("Allowed fact tables", ", ".join(cfg.fact_tables.allowed_tables) or "any valid name")

    console.print(table)


@app.command()
def health():
    """Check database and cache connectivity"""

    async def _check(service: DashboardService):
        await service.database.ping()
        console.print("✓ [green]Database reachable[/green]")
        if service.cache is not None:
            await service.cache.set("health", "ok")
            console.print("✓ [green]Cache reachable[/green]")

    _run(_check)


@app.command("resolve-province")
def resolve_province(value: str = typer.Argument(..., help="Province number or Thai name")):
    """Resolve a province identifier"""
    province = _run(lambda s: s.resolver.resolve_province(value))
    if province is None:
        console.print(f"[yellow]No province matches {value!r}[/yellow]")
        return
    _emit(province, True, "Province")


@app.command("resolve-region")
def resolve_region(value: str = typer.Argument(..., help="Region id or Thai name")):
    """Resolve a region identifier"""
    region = _run(lambda s: s.resolver.resolve_region(value))
    if region is None:
        console.print(f"[yellow]No region matches {value!r}[/yellow]")
        return
    _emit(region, True, "Region")


@app.command("resolve-disease")
def resolve_disease(value: str = typer.Argument(..., help="Disease code, number or name")):
    """Normalise a disease identifier to its canonical code"""
    typer.echo(_run(lambda s: s.resolver.resolve_disease_code(value)))


@app.command("fact-table")
def fact_table(disease: str = typer.Argument(..., help="Disease code in any accepted form")):
    """Show the fact table holding a disease's cases"""
    located = _run(lambda s: s.locator.resolve(disease))
    typer.echo(located.qualified_name)


@app.command("age-groups")
def age_groups(
    main: str = typer.Option(..., "--main", "--province", "-p", help="Province (number or Thai name)"),
    compare: Optional[str] = typer.Option(None, "--compare", "-c", help="Province to compare with"),
    deaths: bool = typer.Option(False, "--deaths", help="Count deaths instead of patients"),
    disease: Optional[str] = DiseaseOption,
    disease_id: Optional[str] = DiseaseIdOption,
    start: Optional[str] = StartOption,
    end: Optional[str] = EndOption,
    as_json: bool = JsonOption,
):
    """Patients or deaths per age group"""
    request = _request(disease, disease_id, start, end)
    if compare is None:
        rows = _run(lambda s: s.age_groups(main, deaths=deaths, **request))
    else:
        rows = _run(lambda s: s.compare_age_groups(main, compare, deaths=deaths, **request))
    _emit(rows, as_json, "Deaths by age group" if deaths else "Patients by age group")


@app.command()
def gender(
    main: str = typer.Option(..., "--main", "--province", "-p", help="Province (number or Thai name)"),
    compare: Optional[str] = typer.Option(None, "--compare", "-c", help="Province to compare with"),
    deaths: bool = typer.Option(False, "--deaths", help="Count deaths instead of patients"),
    disease: Optional[str] = DiseaseOption,
    disease_id: Optional[str] = DiseaseIdOption,
    start: Optional[str] = StartOption,
    end: Optional[str] = EndOption,
    as_json: bool = JsonOption,
):
    """Patients or deaths by gender"""
    request = _request(disease, disease_id, start, end)
    if compare is None:
        result = _run(lambda s: s.gender(main, deaths=deaths, **request))
    else:
        result = _run(lambda s: s.compare_gender(main, compare, deaths=deaths, **request))
        as_json = True
    _emit(result, as_json, "Deaths by gender" if deaths else "Patients by gender")


@app.command()
def trend(
    main: str = typer.Option(..., "--main", "--province", "-p", help="Province (number or Thai name)"),
    compare: Optional[str] = typer.Option(None, "--compare", "-c", help="Province to compare with"),
    deaths: bool = typer.Option(False, "--deaths", help="Count deaths instead of patients"),
    disease: Optional[str] = DiseaseOption,
    disease_id: Optional[str] = DiseaseIdOption,
    start: Optional[str] = StartOption,
    end: Optional[str] = EndOption,
    as_json: bool = JsonOption,
):
    """Monthly patients or deaths"""
    request = _request(disease, disease_id, start, end)
    if compare is None:
        rows = _run(lambda s: s.trend(main, deaths=deaths, **request))
    else:
        rows = _run(lambda s: s.compare_trend(main, compare, deaths=deaths, **request))
    _emit(rows, as_json, "Monthly trend")


@app.command("gender-trend")
def gender_trend(
    province: str = typer.Option(..., "--province", "-p", help="Province (number or Thai name)"),
    disease: Optional[str] = DiseaseOption,
    disease_id: Optional[str] = DiseaseIdOption,
    start: Optional[str] = StartOption,
    end: Optional[str] = EndOption,
    as_json: bool = JsonOption,
):
    """Monthly male and female patients"""
    rows = _run(lambda s: s.gender_trend(province, **_request(disease, disease_id, start, end)))
    _emit(rows, as_json, "Monthly patients by gender")


@app.command()
def summary(
    province: str = typer.Option(..., "--province", "-p", help="Province (number or Thai name)"),
    disease: Optional[str] = DiseaseOption,
    disease_id: Optional[str] = DiseaseIdOption,
    start: Optional[str] = StartOption,
    end: Optional[str] = EndOption,
):
    """Patient and death totals, daily averages and cumulative counts"""
    result = _run(lambda s: s.summary(province, **_request(disease, disease_id, start, end)))
    _emit(result, True, "Summary")


@app.command("region-top")
def region_top(
    main: str = typer.Option(..., "--main", help="Main province"),
    compare: str = typer.Option(..., "--compare", help="Province to compare with"),
    limit: int = typer.Option(5, "--limit", min=1, help="Provinces per region"),
    disease: Optional[str] = DiseaseOption,
    disease_id: Optional[str] = DiseaseIdOption,
    start: Optional[str] = StartOption,
    end: Optional[str] = EndOption,
):
    """Top provinces in the regions of both selected provinces"""
    result = _run(
        lambda s: s.compare_region_top(main, compare, limit=limit, **_request(disease, disease_id, start, end))
    )
    _emit(result, True, "Regional ranking")


if __name__ == "__main__":
    app()
