"""
Shared output helpers for the check programs.

The decision goes to stdout as a single line; diagnostics and errors go
to stderr.
"""

import typer
from rich.console import Console

from models.entities import AccessDecision
from core.errors import AuthorizationDemoError

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_decision(decision: AccessDecision, user_id: str, document_id: str, action: str = 'view'):
    if decision == AccessDecision.ALLOW:
        console.print(f"[bold green]ALLOWED[/bold green]: {user_id} can {action} {document_id}")
    else:
        console.print(f"[bold red]DENIED[/bold red]: {user_id} cannot {action} {document_id}")


def fail(error: AuthorizationDemoError):
    """Report an error on stderr and exit with its code."""
    err_console.print(f"[red]{type(error).__name__}: {error}[/red]")
    raise typer.Exit(code=error.exit_code)
