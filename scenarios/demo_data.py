"""
Demo Data Loader
================

Fixed fixture data shared by both authorization flows:

- org1 "Tech Corp": alice, bob, charlie
- org2 "Marketing Inc": david, eve
- folder1 (org1, owner alice) holds doc1 (owner alice) and doc2 (owner bob)
- folder2 (org2, owner david) holds doc3 (owner david)
- doc4 (org1, owner alice) has no folder

Grants: charlie views doc2 and doc4, bob edits doc4, bob views folder1,
eve edits folder2.

The same facts seed the relational store (Cedar flow) and are rendered as
relationship tuples for OpenFGA.
"""

from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import DataAccessError
from models.database import init_db, get_session
from models.entities import (
    Organization, User, OrganizationMember, Folder, Document,
    DocumentPermission, FolderPermission
)


ORGANIZATIONS = [
    ('org1', 'Tech Corp'),
    ('org2', 'Marketing Inc'),
]

USERS = [
    ('alice', 'Alice Johnson', 'alice@techcorp.com'),
    ('bob', 'Bob Smith', 'bob@techcorp.com'),
    ('charlie', 'Charlie Brown', 'charlie@techcorp.com'),
    ('david', 'David Wilson', 'david@marketing.com'),
    ('eve', 'Eve Davis', 'eve@marketing.com'),
]

MEMBERSHIPS = [
    ('alice', 'org1'),
    ('bob', 'org1'),
    ('charlie', 'org1'),
    ('david', 'org2'),
    ('eve', 'org2'),
]

# (id, name, organization, owner)
FOLDERS = [
    ('folder1', 'Engineering Docs', 'org1', 'alice'),
    ('folder2', 'Marketing Materials', 'org2', 'david'),
]

# (id, name, organization, owner, folder)
DOCUMENTS = [
    ('doc1', 'Architecture Guide', 'org1', 'alice', 'folder1'),
    ('doc2', 'API Documentation', 'org1', 'bob', 'folder1'),
    ('doc3', 'Marketing Strategy', 'org2', 'david', 'folder2'),
    ('doc4', 'Public Document', 'org1', 'alice', None),
]

# (resource, user, kind)
DOCUMENT_GRANTS = [
    ('doc2', 'charlie', 'viewer'),
    ('doc4', 'bob', 'editor'),
    ('doc4', 'charlie', 'viewer'),
]

FOLDER_GRANTS = [
    ('folder1', 'bob', 'viewer'),
    ('folder2', 'eve', 'editor'),
]


def seed_fixtures(session: Session):
    """
    Replace the store's content with the fixture data.

    Args:
        session: SQLAlchemy session; the caller owns the transaction
    """
    # Clear existing data (for idempotent loading)
    for model in (FolderPermission, DocumentPermission, Document, Folder,
                  OrganizationMember, User, Organization):
        session.query(model).delete()
    session.flush()

    session.add_all(Organization(id=i, name=n) for i, n in ORGANIZATIONS)
    session.add_all(User(id=i, name=n, email=e) for i, n, e in USERS)
    session.flush()

    session.add_all(OrganizationMember(user_id=u, organization_id=o) for u, o in MEMBERSHIPS)
    session.add_all(
        Folder(id=i, name=n, organization_id=o, owner_id=owner)
        for i, n, o, owner in FOLDERS
    )
    session.flush()

    session.add_all(
        Document(id=i, name=n, organization_id=o, owner_id=owner, folder_id=f)
        for i, n, o, owner, f in DOCUMENTS
    )
    session.flush()

    session.add_all(
        DocumentPermission(document_id=d, user_id=u, permission_type=k)
        for d, u, k in DOCUMENT_GRANTS
    )
    session.add_all(
        FolderPermission(folder_id=f, user_id=u, permission_type=k)
        for f, u, k in FOLDER_GRANTS
    )
    session.flush()


def fga_tuples() -> List[Tuple[str, str, str]]:
    """Render the fixture data as OpenFGA (user, relation, object) tuples."""
    tuples = [(f"user:{u}", "member", f"organization:{o}") for u, o in MEMBERSHIPS]

    for folder_id, _, org, owner in FOLDERS:
        tuples.append((f"organization:{org}", "organization", f"folder:{folder_id}"))
        if owner:
            tuples.append((f"user:{owner}", "owner", f"folder:{folder_id}"))

    for doc_id, _, org, owner, folder_id in DOCUMENTS:
        tuples.append((f"organization:{org}", "organization", f"document:{doc_id}"))
        if owner:
            tuples.append((f"user:{owner}", "owner", f"document:{doc_id}"))
        if folder_id:
            tuples.append((f"folder:{folder_id}", "parent_folder", f"document:{doc_id}"))

    tuples.extend((f"user:{u}", k, f"document:{d}") for d, u, k in DOCUMENT_GRANTS)
    tuples.extend((f"user:{u}", k, f"folder:{f}") for f, u, k in FOLDER_GRANTS)
    return tuples


def load_demo_data():
    """
    Create the schema if needed and load the fixture data.

    Returns:
        Dictionary of row counts per entity kind
    """
    init_db()

    try:
        with get_session() as session:
            seed_fixtures(session)
    except SQLAlchemyError as e:
        raise DataAccessError(f"fixture load failed: {e}") from e

    return {
        'organizations': len(ORGANIZATIONS),
        'users': len(USERS),
        'folders': len(FOLDERS),
        'documents': len(DOCUMENTS),
        'grants': len(DOCUMENT_GRANTS) + len(FOLDER_GRANTS),
    }


if __name__ == "__main__":
    load_demo_data()
