# Document Management - Core Modules
# Entity hydration and the Cedar, local and OpenFGA decision engines.
#
# Engines are imported from their modules (core.cedar_engine, ...);
# models.database reads core.config at import time, so this package
# must stay free of model imports.

from .errors import (
    AuthorizationDemoError,
    UsageError,
    ConfigurationError,
    DataAccessError,
    NotFoundError,
    EvaluationError
)

__all__ = [
    'AuthorizationDemoError',
    'UsageError',
    'ConfigurationError',
    'DataAccessError',
    'NotFoundError',
    'EvaluationError'
]
