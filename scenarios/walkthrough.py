"""
Scenario Walkthrough
====================

Runs fixed (user, document, action) questions against the fixture data
and shows expected vs. actual decisions for the selected engine.

Scenarios:
1. basic       - The six reference checks of the demo
2. inheritance - Folder grants flowing to documents
3. actions     - Owner / editor / viewer action sets
"""

from typing import Dict, List, Tuple

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from models.entities import AccessDecision
from core.access_control import DocumentAccessControl
from core.errors import AuthorizationDemoError, UsageError

console = Console()

# (user, document, action, expected_allowed, why)
Scenario = Tuple[str, str, str, bool, str]

SCENARIOS: Dict[str, List[Scenario]] = {
    'basic': [
        ("alice", "doc1", "view", True, "owner"),
        ("charlie", "doc2", "view", True, "direct viewer, same organization"),
        ("david", "doc1", "view", False, "other organization, no grant"),
        ("bob", "doc4", "view", True, "direct editor"),
        ("bob", "doc2", "view", True, "owner; folder1 viewer"),
        ("eve", "doc1", "view", False, "other organization, no grant"),
    ],
    'inheritance': [
        ("bob", "doc1", "view", True, "folder1 viewer"),
        ("bob", "doc1", "edit", False, "folder viewer cannot edit"),
        ("alice", "doc2", "view", True, "folder1 owner"),
        ("alice", "doc2", "edit", True, "folder1 owner"),
        ("alice", "doc2", "delete", False, "folder owner cannot delete"),
        ("eve", "doc3", "view", True, "folder2 editor"),
        ("eve", "doc3", "share", True, "folder2 editor"),
        ("charlie", "doc1", "edit", False, "organization member views only"),
    ],
    'actions': [
        ("alice", "doc4", "delete", True, "owner has every action"),
        ("alice", "doc4", "share", True, "owner has every action"),
        ("bob", "doc4", "edit", True, "editor edits"),
        ("bob", "doc4", "share", True, "editor shares"),
        ("bob", "doc4", "delete", False, "editor cannot delete"),
        ("charlie", "doc4", "view", True, "viewer views"),
        ("charlie", "doc4", "edit", False, "viewer cannot edit"),
        ("david", "doc4", "view", False, "other organization"),
    ],
}


def run_scenarios(access_control: DocumentAccessControl, scenario_name: str = "all") -> Tuple[int, int]:
    """
    Run access control scenarios and print the results.

    Args:
        access_control: Configured checker for one engine
        scenario_name: basic, inheritance, actions or all

    Returns:
        Tuple of (passed, failed)

    Raises:
        UsageError: unknown scenario name
    """
    if scenario_name == "all":
        selected = list(SCENARIOS.items())
    elif scenario_name in SCENARIOS:
        selected = [(scenario_name, SCENARIOS[scenario_name])]
    else:
        raise UsageError(
            f"Unknown scenario '{scenario_name}'. Available: {', '.join(SCENARIOS)}, all"
        )

    console.print(Panel(
        "[bold]Document Access Scenarios[/bold]\n\n"
        f"Engine: [cyan]{access_control.engine.name}[/cyan]",
        title="Test Suite",
        box=box.DOUBLE
    ))

    passed = failed = 0
    for name, cases in selected:
        p, f = _run_cases(access_control, cases, f"{name.title()} Scenario")
        passed += p
        failed += f

    console.print(f"\nResults: [green]{passed} passed[/green], [red]{failed} failed[/red]")
    return passed, failed


def _run_cases(access_control, cases: List[Scenario], title: str) -> Tuple[int, int]:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("User", style="cyan")
    table.add_column("Document")
    table.add_column("Action")
    table.add_column("Expected")
    table.add_column("Actual")
    table.add_column("Result")
    table.add_column("Matched")

    passed = failed = 0
    for user_id, document_id, action, expected, why in cases:
        expected_str = "[green]ALLOWED[/green]" if expected else "[red]DENIED[/red]"
        try:
            decision, trace = access_control.check_access(user_id, document_id, action)
        except AuthorizationDemoError as e:
            failed += 1
            table.add_row(user_id, document_id, action, expected_str,
                          "[yellow]ERROR[/yellow]", "[red]FAIL[/red]", str(e)[:40])
            continue

        actual = decision == AccessDecision.ALLOW
        actual_str = "[green]ALLOWED[/green]" if actual else "[red]DENIED[/red]"
        if actual == expected:
            result = "[green]PASS[/green]"
            passed += 1
        else:
            result = f"[red]FAIL[/red] ({why})"
            failed += 1

        table.add_row(user_id, document_id, action, expected_str, actual_str,
                      result, ", ".join(trace) or "-")

    console.print(table)
    return passed, failed
