"""
Document Access Control
=======================

Single entry point for "may user U perform action A on document D?" over
any of the three engines:

- cedar:   hydrate from SQL, evaluate with the Cedar policies
- local:   hydrate from SQL, evaluate the rule table in Python
- openfga: one relationship check against the OpenFGA server

Each call is one linear pipeline with no state carried over to the next
call.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from models.entities import AccessDecision
from .errors import UsageError
from .entity_loader import EntityLoader, DocumentContext

logger = logging.getLogger(__name__)


class DocumentAccessControl:
    """
    Uniform interface over the embedded and the relationship-graph paths.

    Args:
        engine: A CedarEngine, RuleTableEngine or OpenFGAEngine
        session: SQLAlchemy session, required by the embedded engines
    """

    ENGINE_CEDAR = 'cedar'
    ENGINE_LOCAL = 'local'
    ENGINE_OPENFGA = 'openfga'

    ENGINES = (ENGINE_CEDAR, ENGINE_LOCAL, ENGINE_OPENFGA)

    def __init__(self, engine, session: Optional[Session] = None):
        if engine.name not in self.ENGINES:
            raise UsageError(f"Invalid engine. Must be one of: {list(self.ENGINES)}")
        if engine.name != self.ENGINE_OPENFGA and session is None:
            raise UsageError(f"The {engine.name} engine needs a database session")

        self.engine = engine
        self.session = session

    @property
    def uses_entity_store(self) -> bool:
        return self.engine.name != self.ENGINE_OPENFGA

    def load_context(self, user_id: str, document_id: str) -> DocumentContext:
        return EntityLoader(self.session).load(user_id, document_id)

    def check_access(
        self,
        user_id: str,
        document_id: str,
        action: str = 'view'
    ) -> Tuple[AccessDecision, List[str]]:
        """
        Decide one request.

        Args:
            user_id: Acting user
            document_id: Target document
            action: One of view, edit, delete, share

        Returns:
            Tuple of (decision, matched rules or relations)
        """
        if not user_id or not document_id:
            raise UsageError("user and document identifiers must be non-empty")

        if self.uses_entity_store:
            context = self.load_context(user_id, document_id)
            decision, trace = self.engine.check_access(context, action)
        else:
            decision, trace = self.engine.check_access(user_id, document_id, action)

        logger.info("%s: %s %s %s -> %s %s", self.engine.name, user_id, action,
                    document_id, decision.value, trace)
        return decision, trace
