"""
Runtime Configuration
=====================

Environment-driven settings shared by both authorization flows.

Variables:
    DOCMGMT_DATABASE_URL  SQLAlchemy URL of the relational store (Cedar flow)
    CEDAR_POLICY_PATH     Cedar policy text file
    OPENFGA_API_URL       OpenFGA HTTP endpoint
    OPENFGA_STORE_ID      OpenFGA store (discovered when unset)
    OPENFGA_MODEL_ID      OpenFGA authorization model (discovered when unset)
    DOCMGMT_LOG_LEVEL     Logging level for the stderr handler
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
POLICY_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'policies')

DEFAULT_DATABASE_URL = f"sqlite:///{os.path.join(PROJECT_ROOT, 'document_management.db')}"
DEFAULT_POLICY_PATH = os.path.join(POLICY_DIR, 'policies.cedar')
DEFAULT_FGA_MODEL_PATH = os.path.join(POLICY_DIR, 'document_management.json')
DEFAULT_OPENFGA_API_URL = "http://localhost:8080"


def _env(name: str) -> Optional[str]:
    value = os.environ.get(name, '').strip()
    return value or None


def database_url() -> str:
    return _env('DOCMGMT_DATABASE_URL') or DEFAULT_DATABASE_URL


def policy_path() -> str:
    return _env('CEDAR_POLICY_PATH') or DEFAULT_POLICY_PATH


def openfga_api_url() -> str:
    return _env('OPENFGA_API_URL') or DEFAULT_OPENFGA_API_URL


def openfga_store_id() -> Optional[str]:
    return _env('OPENFGA_STORE_ID')


def openfga_model_id() -> Optional[str]:
    return _env('OPENFGA_MODEL_ID')


def configure_logging(level: Optional[str] = None):
    """
    Route stdlib logging to stderr through Rich.

    Stdout is reserved for the decision line, so diagnostics never mix
    with the result a caller may parse.

    Args:
        level: Level name; falls back to DOCMGMT_LOG_LEVEL, then WARNING
    """
    level_name = (level or _env('DOCMGMT_LOG_LEVEL') or 'WARNING').upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )
