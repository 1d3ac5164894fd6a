"""
Error Taxonomy
==============

Every failure of a check surfaces as one of these exceptions. None of them
is ever converted into a DENY: an authorization decision that could not be
computed is an error, not a refusal.
"""


class AuthorizationDemoError(Exception):
    """Base class for all errors raised by the check flows."""

    exit_code = 1


class UsageError(AuthorizationDemoError):
    """Invalid arguments (empty identifiers, unknown action)."""

    exit_code = 2


class ConfigurationError(AuthorizationDemoError):
    """No reachable store/model, or no readable policy file."""


class DataAccessError(AuthorizationDemoError):
    """Storage unreachable, query failure or malformed rows."""


class NotFoundError(AuthorizationDemoError):
    """An identifier the system cannot resolve."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier


class EvaluationError(AuthorizationDemoError):
    """Unparsable policy text or a structurally invalid entity graph."""
