# Document Management - Database Models
# Relational store hydrated by the Cedar flow

from .database import Base, get_engine, get_session, init_db
from .entities import (
    AccessDecision,
    Organization,
    User,
    OrganizationMember,
    Folder,
    Document,
    DocumentPermission,
    FolderPermission,
    PERMISSION_KINDS
)

__all__ = [
    'Base',
    'get_engine',
    'get_session',
    'init_db',
    'AccessDecision',
    'Organization',
    'User',
    'OrganizationMember',
    'Folder',
    'Document',
    'DocumentPermission',
    'FolderPermission',
    'PERMISSION_KINDS'
]
