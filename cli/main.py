"""
Document Management Authorization - Admin CLI
=============================================

Command-line interface for setting up and exploring the two
authorization paths side by side.

Features:
- Relational store initialization and fixture seeding
- OpenFGA store provisioning (model + relationship tuples)
- Single access checks with the matched-rule trace
- Scenario walkthroughs against any engine

Built with Typer and Rich.
"""

from contextlib import contextmanager

import typer
from sqlalchemy.exc import SQLAlchemyError
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.tree import Tree
from rich import box

from core.config import (
    configure_logging, policy_path, openfga_api_url,
    openfga_store_id, openfga_model_id, DEFAULT_FGA_MODEL_PATH
)
from core.errors import AuthorizationDemoError, DataAccessError, UsageError
from .common import fail

# Initialize CLI app and console
app = typer.Typer(
    name="docmgmt",
    help="Document management authorization - Cedar vs. OpenFGA",
    add_completion=False
)

console = Console()

# Sub-commands
documents_app = typer.Typer(help="Inspect documents and their hydrated entities")
app.add_typer(documents_app, name="documents")

ENGINE_HELP = "Engine: cedar, local or openfga"


def get_session():
    """Get a database session."""
    from models.database import get_session
    return get_session()


@contextmanager
def open_access_control(engine_name: str):
    """Yield a DocumentAccessControl for the named engine, closing its resources after."""
    from core.access_control import DocumentAccessControl

    if engine_name == DocumentAccessControl.ENGINE_OPENFGA:
        from core.fga_engine import OpenFGAEngine, make_client
        with make_client(openfga_api_url()) as client:
            yield DocumentAccessControl(
                OpenFGAEngine(client, openfga_store_id(), openfga_model_id())
            )
        return

    if engine_name == DocumentAccessControl.ENGINE_CEDAR:
        from core.cedar_engine import CedarEngine
        engine = CedarEngine.from_file(policy_path())
    elif engine_name == DocumentAccessControl.ENGINE_LOCAL:
        from core.rule_engine import RuleTableEngine
        engine = RuleTableEngine()
    else:
        raise UsageError(f"Invalid engine. Must be one of: {list(DocumentAccessControl.ENGINES)}")

    with get_session() as session:
        yield DocumentAccessControl(engine, session)


def print_banner():
    """Display application banner."""
    banner = """
    ╔═══════════════════════════════════════════════════════════╗
    ║        DOCUMENT MANAGEMENT AUTHORIZATION DEMO             ║
    ║                                                           ║
    ║   Embedded policies (Cedar) vs. relationship graph        ║
    ║                     (OpenFGA)                             ║
    ╚═══════════════════════════════════════════════════════════╝
    """
    console.print(Panel(banner, style="bold blue"))


# ============================================================================
# Setup Commands
# ============================================================================

@app.command()
def init():
    """Initialize the database with schema."""
    from models.database import init_db
    try:
        init_db()
    except AuthorizationDemoError as e:
        fail(e)
    console.print("[green]Database initialized successfully![/green]")


@app.command()
def reset():
    """Reset database (WARNING: destroys all data)."""
    if typer.confirm("This will delete all data. Are you sure?"):
        from models.database import reset_db
        try:
            reset_db()
        except AuthorizationDemoError as e:
            fail(e)
        console.print("[yellow]Database reset complete.[/yellow]")


@app.command()
def seed():
    """Load the fixture organizations, users, folders, documents and grants."""
    from scenarios import load_demo_data
    try:
        counts = load_demo_data()
    except AuthorizationDemoError as e:
        fail(e)
    console.print("[green]Fixture data loaded successfully![/green]")
    for kind, count in counts.items():
        console.print(f"  - {count} {kind}")
    console.print("\nTry:")
    console.print("  [cyan]cedar-check alice doc1[/cyan]")
    console.print("  [cyan]docmgmt check bob doc2 --engine local[/cyan]")


@app.command("fga-setup")
def fga_setup(
    store_name: str = typer.Option("document-management", "--store-name", help="Store name"),
    model_path: str = typer.Option(DEFAULT_FGA_MODEL_PATH, "--model", "-m",
                                   help="Authorization model (OpenFGA JSON)")
):
    """Create an OpenFGA store, upload the model and write the fixture tuples."""
    from core.fga_engine import make_client, load_model, provision_store
    from scenarios import fga_tuples

    configure_logging()
    try:
        model = load_model(model_path)
        with make_client(openfga_api_url()) as client:
            store_id, model_id = provision_store(client, store_name, model, fga_tuples())
    except AuthorizationDemoError as e:
        fail(e)

    console.print(Panel(
        f"[bold]Store:[/bold] {store_id}\n"
        f"[bold]Model:[/bold] {model_id}\n\n"
        f"export OPENFGA_STORE_ID={store_id}\n"
        f"export OPENFGA_MODEL_ID={model_id}",
        title="OpenFGA Ready",
        box=box.ROUNDED
    ))


# ============================================================================
# Check Commands
# ============================================================================

@app.command()
def check(
    user_id: str = typer.Argument(..., help="User identifier"),
    document_id: str = typer.Argument(..., help="Document identifier"),
    action: str = typer.Option("view", "--action", "-a", help="view, edit, delete or share"),
    engine: str = typer.Option("cedar", "--engine", "-e", help=ENGINE_HELP)
):
    """Test an access decision and show which rules matched."""
    from models.entities import AccessDecision

    configure_logging()
    try:
        with open_access_control(engine) as access_control:
            decision, trace = access_control.check_access(user_id, document_id, action)
    except AuthorizationDemoError as e:
        fail(e)

    granted = decision == AccessDecision.ALLOW
    headline = "[bold green]ACCESS GRANTED[/bold green]" if granted \
        else "[bold red]ACCESS DENIED[/bold red]"
    console.print(Panel(
        f"{headline}\n\n"
        f"User: {user_id}\n"
        f"Document: {document_id}\n"
        f"Action: {action}\n"
        f"Engine: {engine}\n\n"
        f"Matched: {', '.join(trace) if trace else 'no rule'}",
        title="Access Decision",
        box=box.DOUBLE
    ))


@app.command()
def scenario(
    scenario_name: str = typer.Argument("all", help="Scenario to run: basic, inheritance, actions, all"),
    engine: str = typer.Option("cedar", "--engine", "-e", help=ENGINE_HELP)
):
    """Run predefined scenarios against the fixture data."""
    from scenarios import run_scenarios

    configure_logging()
    try:
        with open_access_control(engine) as access_control:
            _, failed = run_scenarios(access_control, scenario_name)
    except AuthorizationDemoError as e:
        fail(e)

    if failed:
        raise typer.Exit(code=1)


# ============================================================================
# Document Commands
# ============================================================================

@documents_app.command("list")
def list_documents():
    """List all documents."""
    from models.entities import Document

    try:
        with get_session() as session:
            documents = session.query(Document).order_by(Document.id).all()
            rows = [(d.id, d.name, d.organization_id, d.owner_id or "-", d.folder_id or "-")
                    for d in documents]
    except SQLAlchemyError as e:
        fail(DataAccessError(f"document query failed: {e}"))
    except AuthorizationDemoError as e:
        fail(e)

    table = Table(title="Documents", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Organization")
    table.add_column("Owner")
    table.add_column("Folder")

    for row in rows:
        table.add_row(*row)

    console.print(table)


@documents_app.command("show")
def show_document(
    document_id: str = typer.Argument(..., help="Document identifier"),
    user_id: str = typer.Option(..., "--user", "-u", help="Acting user whose context is hydrated")
):
    """Show the entities hydrated for a (user, document) pair."""
    from core.entity_loader import EntityLoader
    from core.rule_engine import RuleTableEngine

    configure_logging()
    try:
        with get_session() as session:
            context = EntityLoader(session).load(user_id, document_id)
    except AuthorizationDemoError as e:
        fail(e)

    data = context.to_dict()
    tree = Tree(f"[bold cyan]{document_id}[/bold cyan] as seen by [cyan]{user_id}[/cyan]")

    user_branch = tree.add("[yellow]User[/yellow]")
    user_branch.add(f"organization: {data['user']['organization'] or '[dim]none[/dim]'}")

    doc_branch = tree.add("[yellow]Document[/yellow]")
    doc_branch.add(f"organization: {data['document']['organization'] or '-'}")
    doc_branch.add(f"owner: {data['document']['owner'] or '[dim]none[/dim]'}")
    for kind, users in data['document']['permissions'].items():
        doc_branch.add(f"{kind}s: {', '.join(users)}")

    if data['folder']:
        folder_branch = tree.add(f"[yellow]Folder {data['folder']['id']}[/yellow]")
        folder_branch.add(f"organization: {data['folder']['organization'] or '-'}")
        folder_branch.add(f"owner: {data['folder']['owner'] or '[dim]none[/dim]'}")
        for kind, users in data['folder']['permissions'].items():
            folder_branch.add(f"{kind}s: {', '.join(users)}")
    else:
        tree.add("[dim]No parent folder[/dim]")

    console.print(tree)

    actions = RuleTableEngine().allowed_actions(context)
    console.print(f"\n[bold]Allowed actions:[/bold] {', '.join(actions) if actions else 'none'}")


# ============================================================================
# Main Entry Point
# ============================================================================

@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """
    Document Management Authorization Demo

    The same toy scenario decided two ways: Cedar policies evaluated
    in-process over SQL-hydrated entities, and OpenFGA relationship checks.
    """
    if ctx.invoked_subcommand is None:
        print_banner()
        console.print("\nUse [cyan]--help[/cyan] to see available commands.\n")
        console.print("Quick Start:")
        console.print("  1. [cyan]docmgmt seed[/cyan]              - Create schema and load fixtures")
        console.print("  2. [cyan]docmgmt fga-setup[/cyan]         - Provision OpenFGA")
        console.print("  3. [cyan]cedar-check alice doc1[/cyan]    - Embedded policy check")
        console.print("  4. [cyan]openfga-check alice doc1[/cyan]  - Relationship-graph check")
        console.print()


if __name__ == "__main__":
    app()
