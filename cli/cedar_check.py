"""
cedar-check: embedded policy evaluation path.

    cedar-check <userID> <documentID>

Loads the Cedar policies, hydrates the document's entities from the
relational store and prints whether the user may view the document.
"""

import typer

from core.access_control import DocumentAccessControl
from core.cedar_engine import CedarEngine
from core.config import configure_logging, policy_path
from core.errors import AuthorizationDemoError
from models.database import get_session
from .common import print_decision, fail

app = typer.Typer(
    name="cedar-check",
    help="Check document view access with Cedar policies",
    add_completion=False
)


@app.command()
def check(
    user_id: str = typer.Argument(..., help="User identifier"),
    document_id: str = typer.Argument(..., help="Document identifier")
):
    """Can USER_ID view DOCUMENT_ID?"""
    configure_logging()
    try:
        engine = CedarEngine.from_file(policy_path())
        with get_session() as session:
            decision, _ = DocumentAccessControl(engine, session).check_access(user_id, document_id)
    except AuthorizationDemoError as e:
        fail(e)

    print_decision(decision, user_id, document_id)


if __name__ == "__main__":
    app()
