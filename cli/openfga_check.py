"""
openfga-check: relationship-graph path.

    openfga-check <userID> <documentID>

Resolves the OpenFGA store and authorization model (OPENFGA_STORE_ID /
OPENFGA_MODEL_ID, else the first ones listed) and asks whether
user:<userID> has can_view on document:<documentID>.
"""

import typer

from core.config import configure_logging, openfga_api_url, openfga_store_id, openfga_model_id
from core.errors import AuthorizationDemoError
from core.fga_engine import OpenFGAEngine, make_client
from .common import print_decision, fail

app = typer.Typer(
    name="openfga-check",
    help="Check document view access against OpenFGA",
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
        with make_client(openfga_api_url()) as client:
            engine = OpenFGAEngine(client, openfga_store_id(), openfga_model_id())
            decision, _ = engine.check_access(user_id, document_id)
    except AuthorizationDemoError as e:
        fail(e)

    print_decision(decision, user_id, document_id)


if __name__ == "__main__":
    app()
