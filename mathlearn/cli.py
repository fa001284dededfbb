"""CLI for seeding the MathLearn database.

Commands:
- (none): seed every table in the configured order
- list: show configured tables
- table NAME: seed one table and its dependencies
- clean: remove lesson content and activity, reset user XP
- reset: clean, then seed everything
- test: check the database connection
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from mathlearn.config import settings
from mathlearn.database import SessionLocal, init_db
from mathlearn.seeding import JsonSeeder, SeedError, TableResult

app = typer.Typer(
    name="mathlearn-seed",
    help="Seed the MathLearn database from JSON files.",
    invoke_without_command=True,
    no_args_is_help=False,
)
console = Console()


def _config_path(ctx: typer.Context) -> Path:
    return ctx.obj or Path(settings.SEED_CONFIG_PATH)


def _open_seeder(ctx: typer.Context):
    """Create tables if needed and build a seeder bound to a fresh session."""
    try:
        init_db()
    except SQLAlchemyError as e:
        raise SeedError(f"Database unavailable: {e}")
    db = SessionLocal()
    try:
        return db, JsonSeeder(db, _config_path(ctx))
    except SeedError:
        db.close()
        raise


def _print_results(results: List[TableResult]) -> None:
    table = Table(title="Seed results")
    table.add_column("Table")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Skipped", justify="right")
    for r in results:
        table.add_row(r.table, str(r.created), str(r.updated), str(r.skipped))
    console.print(table)


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to seed-config.json (defaults to SEED_CONFIG_PATH)"
    ),
):
    """Seed all tables when no command is given."""
    ctx.obj = config
    if ctx.invoked_subcommand is not None:
        return

    try:
        db, seeder = _open_seeder(ctx)
    except SeedError as e:
        _fail(str(e))

    try:
        results = seeder.seed_all()
    except SeedError as e:
        _fail(f"Seeding failed: {e}")
    finally:
        db.close()

    _print_results(results)
    console.print("[green]✓ Database seeded[/green]")


@app.command("list")
def list_tables(ctx: typer.Context):
    """List tables available for seeding."""
    try:
        db, seeder = _open_seeder(ctx)
    except SeedError as e:
        _fail(str(e))

    try:
        table = Table(title=f"Seed tables (config v{seeder.version})")
        table.add_column("Table")
        table.add_column("File")
        table.add_column("Depends on")
        table.add_column("Description")
        for table_config in seeder.list_tables():
            table.add_row(
                table_config.table,
                table_config.file,
                ", ".join(table_config.dependencies) or "-",
                table_config.description,
            )
        console.print(table)
    finally:
        db.close()


@app.command("table")
def seed_table(ctx: typer.Context, name: str = typer.Argument(..., help="Table name from the config")):
    """Seed one table, seeding its dependencies first."""
    try:
        db, seeder = _open_seeder(ctx)
    except SeedError as e:
        _fail(str(e))

    try:
        results = seeder.seed_table_by_name(name)
    except SeedError as e:
        if seeder.get_table_info(name) is None:
            console.print("\nAvailable tables:")
            for table_config in seeder.list_tables():
                console.print(f"  - {table_config.table}")
        _fail(str(e))
    finally:
        db.close()

    _print_results(results)
    console.print(f"[green]✓ Seeded {name}[/green]")


@app.command("clean")
def clean(ctx: typer.Context):
    """Delete lessons, problems, submissions and progress; reset user XP."""
    try:
        db, seeder = _open_seeder(ctx)
    except SeedError as e:
        _fail(str(e))

    try:
        counts = seeder.clean()
    except SeedError as e:
        _fail(str(e))
    finally:
        db.close()

    for name, count in counts.items():
        console.print(f"  [dim]{name}:[/dim] {count}")
    console.print("[green]✓ Database cleaned[/green]")


@app.command("reset")
def reset(ctx: typer.Context):
    """Clean the database, then seed everything."""
    try:
        db, seeder = _open_seeder(ctx)
    except SeedError as e:
        _fail(str(e))

    try:
        results = seeder.reset()
    except SeedError as e:
        _fail(f"Reset failed: {e}")
    finally:
        db.close()

    _print_results(results)
    console.print("[green]✓ Database reset[/green]")


@app.command("test")
def test_connection(ctx: typer.Context):
    """Check that the database is reachable."""
    try:
        db, seeder = _open_seeder(ctx)
    except SeedError as e:
        _fail(str(e))

    try:
        ok = seeder.test_connection()
    finally:
        db.close()

    if not ok:
        _fail("Database connection failed")
    console.print("[green]✓ Database connection OK[/green]")


if __name__ == "__main__":
    app()
