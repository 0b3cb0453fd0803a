"""
DistriApp CLI.

Command-line interface for database setup and operator checks.
"""

import sys
from datetime import timedelta
from importlib import metadata

import httpx
import typer
from rich.console import Console
from rich.table import Table

from shared.config.settings import settings

app = typer.Typer(
    name="distriapp",
    help="DistriApp operations CLI",
    add_completion=False,
)
console = Console()


def _cop(amount: int) -> str:
    return f"${amount:,.0f}".replace(",", ".")


def _limit(value: int) -> str:
    return "∞" if value < 0 else str(value)


# =============================================================================
# Database Commands
# =============================================================================


@app.command()
def db_init():
    """Create missing tables."""
    from rest_api.models import Base
    from shared.infrastructure.db import engine

    Base.metadata.create_all(bind=engine)
    console.print("[green]✓ Tables created/verified[/green]")


@app.command()
def db_seed(
    demo: bool = typer.Option(False, "--demo", help="Also create the pilot company and demo users"),
    force: bool = typer.Option(False, "--force", "-f", help="Allow demo data in production"),
):
    """Seed the default plans (and optionally the demo tenant)."""
    from rest_api.seed import seed_demo, seed_plans
    from shared.infrastructure.db import SessionLocal

    if demo and settings.environment == "production" and not force:
        console.print("[red]Cannot seed demo data in production without --force[/red]")
        raise typer.Exit(1)

    with SessionLocal() as db:
        created = seed_plans(db)
        console.print(f"[green]✓ Plans created: {created}[/green]")
        if demo:
            seed_demo(db)
            console.print("[green]✓ Demo company ready[/green]")


# =============================================================================
# Tenant Commands
# =============================================================================


@app.command()
def plans():
    """List active plans."""
    from rest_api.services.domain import SuperadminService
    from shared.infrastructure.db import SessionLocal

    with SessionLocal() as db:
        rows = SuperadminService(db).list_plans()

    table = Table(title="Plans")
    table.add_column("Name", style="cyan")
    table.add_column("Price (COP)", style="green", justify="right")
    table.add_column("Vendors", justify="right")
    table.add_column("Customers", justify="right")
    table.add_column("Delivery", justify="right")
    table.add_column("Offered")

    for plan in rows:
        table.add_row(
            plan.name,
            _cop(plan.price),
            _limit(plan.max_vendors),
            _limit(plan.max_customers),
            _limit(plan.max_delivery),
            "yes" if plan.active else "no",
        )
    console.print(table)


@app.command()
def companies():
    """List companies with usage and subscription state."""
    from rest_api.services.domain import SuperadminService
    from shared.infrastructure.db import SessionLocal

    with SessionLocal() as db:
        rows = SuperadminService(db).list_companies()

    table = Table(title="Companies")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Users", justify="right")
    table.add_column("Customers", justify="right")
    table.add_column("Plan")
    table.add_column("Status")
    table.add_column("Period end")

    for company in rows:
        status = company.subscription_status or "-"
        if company.read_only:
            status = f"[red]{status} (read-only)[/red]"
        table.add_row(
            str(company.id),
            company.name if company.is_active else f"[dim]{company.name}[/dim]",
            str(company.user_count),
            str(company.customer_count),
            company.plan_name or "-",
            status,
            company.current_period_end.date().isoformat() if company.current_period_end else "-",
        )
    console.print(table)


@app.command()
def expiring(days: int = typer.Option(7, "--days", "-d", min=1, help="Look-ahead window")):
    """Companies whose billing period ends within the next DAYS days."""
    from rest_api.services.domain import SuperadminService
    from shared.infrastructure.db import SessionLocal
    from shared.utils.dates import as_utc, utcnow

    now = utcnow()
    horizon = now + timedelta(days=days)
    with SessionLocal() as db:
        rows = [
            company
            for company in SuperadminService(db).list_companies()
            if company.current_period_end and as_utc(company.current_period_end) <= horizon
        ]

    if not rows:
        console.print(f"[green]No subscriptions end in the next {days} days[/green]")
        return

    table = Table(title=f"Subscriptions ending within {days} days")
    table.add_column("Company", style="cyan")
    table.add_column("Plan")
    table.add_column("Status")
    table.add_column("Ends", justify="right")
    for company in sorted(rows, key=lambda c: as_utc(c.current_period_end)):
        remaining = (as_utc(company.current_period_end) - now).days
        ends = "[red]expired[/red]" if remaining < 0 else f"{remaining}d"
        table.add_row(company.name, company.plan_name or "-", company.subscription_status or "-", ends)
    console.print(table)


# =============================================================================
# Operations
# =============================================================================


@app.command()
def health(
    url: str = typer.Option(
        f"http://localhost:{settings.rest_api_port}/api/health/detailed",
        help="Detailed health endpoint of a running API",
    ),
):
    """Query a running API; exits 1 when it reports itself degraded."""
    try:
        response = httpx.get(url, timeout=5.0)
    except httpx.HTTPError as e:
        console.print(f"[red]✗ API unreachable: {type(e).__name__}[/red]")
        raise typer.Exit(1)

    body = response.json()
    table = Table(title=f"DistriApp health ({body.get('environment', '?')})")
    table.add_column("Dependency", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")
    for name, check in body.get("dependencies", {}).items():
        status = check.get("status", "?")
        color = {"healthy": "green", "disabled": "yellow"}.get(status, "red")
        table.add_row(name, f"[{color}]{status}[/{color}]", check.get("error", ""))
    console.print(table)

    if response.status_code != 200:
        raise typer.Exit(1)


@app.command()
def version():
    """Package version, interpreter and settings in effect."""
    try:
        package_version = metadata.version("distriapp")
    except metadata.PackageNotFoundError:
        package_version = "not installed"

    table = Table(title="DistriApp")
    table.add_column("", style="cyan")
    table.add_column("")
    table.add_row("Package", package_version)
    table.add_row("Python", sys.version.split()[0])
    table.add_row("Environment", settings.environment)
    table.add_row("Business timezone", settings.business_timezone)
    table.add_row("Redis fan-out", "on" if settings.redis_enabled else "off")
    console.print(table)


if __name__ == "__main__":
    app()
