"""
Entity Hydration for the Cedar Flow
===================================

Gathers exactly the facts needed to decide whether a user may act on a
document, and nothing more:

- the user's organization (at most one membership is read)
- the document's organization, owner and parent folder
- the parent folder's organization and owner
- the direct grants on the document and the grants on its folder

A single multi-CTE statement returns one row per contributing grant edge
(or one row with NULL grant columns when there are none). The rows are
folded into a DocumentContext with set semantics per permission kind.

The statement is plain SQL accepted by both PostgreSQL and SQLite.
"""

import logging
from typing import Dict, Optional, Set

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.entities import PERMISSION_KINDS
from .errors import DataAccessError, NotFoundError, UsageError

logger = logging.getLogger(__name__)


HYDRATION_QUERY = text("""
WITH user_org AS (
    SELECT organization_id AS user_org_id
    FROM organization_members
    WHERE user_id = :user_id
    ORDER BY organization_id
    LIMIT 1
),
doc_info AS (
    SELECT d.id AS doc_id, d.organization_id AS doc_org_id,
           d.folder_id, d.owner_id AS doc_owner_id,
           f.organization_id AS folder_org_id, f.owner_id AS folder_owner_id
    FROM documents d
    LEFT JOIN folders f ON d.folder_id = f.id
    WHERE d.id = :document_id
),
grants AS (
    SELECT dp.user_id, dp.permission_type, 'document' AS granted_on
    FROM document_permissions dp
    WHERE dp.document_id = :document_id
    UNION ALL
    SELECT fp.user_id, fp.permission_type, 'folder' AS granted_on
    FROM folder_permissions fp
    JOIN doc_info di ON fp.folder_id = di.folder_id
)
SELECT
    (SELECT COUNT(*) FROM users WHERE id = :user_id) AS user_known,
    uo.user_org_id,
    di.doc_id,
    di.doc_org_id,
    di.folder_id,
    di.doc_owner_id,
    di.folder_org_id,
    di.folder_owner_id,
    g.user_id AS grant_user_id,
    g.permission_type AS grant_kind,
    g.granted_on
FROM doc_info di
LEFT JOIN user_org uo ON 1 = 1
LEFT JOIN grants g ON 1 = 1
""")

_DOCUMENT_COLUMNS = (
    'user_org_id', 'doc_id', 'doc_org_id', 'folder_id',
    'doc_owner_id', 'folder_org_id', 'folder_owner_id'
)


class DocumentContext:
    """
    Hydrated facts about one (user, document) pair.

    Optional facts are None when absent; a missing owner or folder is
    not an error, the rules referencing it simply never match.
    """

    def __init__(
        self,
        user_id: str,
        document_id: str,
        document_organization: Optional[str],
        user_organization: Optional[str] = None,
        folder_id: Optional[str] = None,
        document_owner: Optional[str] = None,
        folder_organization: Optional[str] = None,
        folder_owner: Optional[str] = None,
        document_permissions: Optional[Dict[str, Set[str]]] = None,
        folder_permissions: Optional[Dict[str, Set[str]]] = None
    ):
        self.user_id = user_id
        self.user_organization = user_organization
        self.document_id = document_id
        self.document_organization = document_organization
        self.folder_id = folder_id
        self.document_owner = document_owner
        self.folder_organization = folder_organization
        self.folder_owner = folder_owner
        self.document_permissions = document_permissions or {}
        self.folder_permissions = folder_permissions or {}

    def document_grantees(self, kind: str) -> Set[str]:
        return self.document_permissions.get(kind, set())

    def folder_grantees(self, kind: str) -> Set[str]:
        return self.folder_permissions.get(kind, set())

    def to_dict(self) -> Dict[str, object]:
        """Plain representation for display and JSON output."""
        return {
            'user': {'id': self.user_id, 'organization': self.user_organization},
            'document': {
                'id': self.document_id,
                'organization': self.document_organization,
                'owner': self.document_owner,
                'parent_folder': self.folder_id,
                'permissions': {k: sorted(v) for k, v in sorted(self.document_permissions.items())}
            },
            'folder': None if self.folder_id is None else {
                'id': self.folder_id,
                'organization': self.folder_organization,
                'owner': self.folder_owner,
                'permissions': {k: sorted(v) for k, v in sorted(self.folder_permissions.items())}
            }
        }

    def __repr__(self):
        return (f"<DocumentContext(user='{self.user_id}', document='{self.document_id}', "
                f"folder={self.folder_id!r})>")


class EntityLoader:
    """
    Loads DocumentContext aggregates from the relational store.

    Stateless apart from the session it is given; a new loader per check
    is cheap.
    """

    def __init__(self, session: Session):
        """
        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def load(self, user_id: str, document_id: str) -> DocumentContext:
        """
        Hydrate the context needed to decide on (user_id, document_id).

        Args:
            user_id: Acting user
            document_id: Target document

        Returns:
            DocumentContext for the pair

        Raises:
            UsageError: an identifier is empty
            NotFoundError: the document or the user does not exist
            DataAccessError: the query failed or returned malformed rows
        """
        if not user_id or not document_id:
            raise UsageError("user and document identifiers must be non-empty")

        try:
            rows = self.session.execute(
                HYDRATION_QUERY, {'user_id': user_id, 'document_id': document_id}
            ).mappings().all()
        except SQLAlchemyError as e:
            raise DataAccessError(f"entity query failed: {e}") from e

        if not rows:
            raise NotFoundError('document', document_id)
        if not rows[0]['user_known']:
            raise NotFoundError('user', user_id)

        context = self._fold(user_id, rows)
        logger.debug("Hydrated %r from %d row(s)", context, len(rows))
        return context

    def _fold(self, user_id: str, rows) -> DocumentContext:
        """
        Fold projection rows into one aggregate.

        Every row repeats the document facts; they must agree. Grant
        columns contribute one (kind, user) edge per row.
        """
        first = rows[0]
        document_facts = tuple(first[c] for c in _DOCUMENT_COLUMNS)

        document_permissions: Dict[str, Set[str]] = {}
        folder_permissions: Dict[str, Set[str]] = {}

        for row in rows:
            if tuple(row[c] for c in _DOCUMENT_COLUMNS) != document_facts:
                raise DataAccessError("rows disagree on document facts")

            grantee, kind, origin = row['grant_user_id'], row['grant_kind'], row['granted_on']
            if grantee is None and kind is None and origin is None:
                continue  # no grants at all
            if not grantee or kind not in PERMISSION_KINDS:
                raise DataAccessError(f"malformed grant row: {grantee!r} {kind!r}")

            if origin == 'document':
                document_permissions.setdefault(kind, set()).add(grantee)
            elif origin == 'folder':
                folder_permissions.setdefault(kind, set()).add(grantee)
            else:
                raise DataAccessError(f"unknown grant origin: {origin!r}")

        return DocumentContext(
            user_id=user_id,
            user_organization=first['user_org_id'],
            document_id=first['doc_id'],
            document_organization=first['doc_org_id'],
            folder_id=first['folder_id'],
            document_owner=first['doc_owner_id'],
            folder_organization=first['folder_org_id'],
            folder_owner=first['folder_owner_id'],
            document_permissions=document_permissions,
            folder_permissions=folder_permissions
        )
