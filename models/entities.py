"""
Entity Models for the Document-Management Store
================================================

Relational model shared by both authorization flows:

- Organizations own folders and documents and have member users
- Folders belong to one organization and have one owner
- Documents belong to one organization, optionally sit in one folder,
  and have one owner
- Permission grants give a user the 'editor' or 'viewer' kind on a
  folder or a document

Grants on a folder are inherited by the documents inside it. That is a
read-time rule of the authorization policy, never a stored copy.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, ForeignKey,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .database import Base


PERMISSION_KINDS = ('editor', 'viewer')


class AccessDecision(enum.Enum):
    """Possible outcomes of an access control decision."""
    ALLOW = "ALLOWED"
    DENY = "DENIED"


# ============================================================================
# Principals and Containers
# ============================================================================

class Organization(Base):
    """Tenant owning folders and documents."""
    __tablename__ = 'organizations'

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)

    members = relationship("OrganizationMember", back_populates="organization",
                           cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Organization(id='{self.id}', name='{self.name}')>"


class User(Base):
    __tablename__ = 'users'

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100))

    memberships = relationship("OrganizationMember", back_populates="user",
                               cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id='{self.id}', name='{self.name}')>"


class OrganizationMember(Base):
    """
    Membership of a user in an organization.

    The schema allows several memberships per user; the Cedar flow reads
    at most one when hydrating a principal.
    """
    __tablename__ = 'organization_members'

    user_id = Column(String(50), ForeignKey('users.id'), primary_key=True)
    organization_id = Column(String(50), ForeignKey('organizations.id'), primary_key=True)

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="members")

    def __repr__(self):
        return f"<OrganizationMember(user_id='{self.user_id}', organization_id='{self.organization_id}')>"


# ============================================================================
# Resources
# ============================================================================

class Folder(Base):
    __tablename__ = 'folders'

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    organization_id = Column(String(50), ForeignKey('organizations.id'), nullable=False)
    owner_id = Column(String(50), ForeignKey('users.id'))  # NULL = no owner recorded

    documents = relationship("Document", back_populates="folder")
    permissions = relationship("FolderPermission", back_populates="folder",
                               cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Folder(id='{self.id}', organization_id='{self.organization_id}')>"


class Document(Base):
    """
    A protected document.

    When folder_id is set, the folder's organization must equal the
    document's organization. Fixture data guarantees this; checks do not
    re-validate it.
    """
    __tablename__ = 'documents'

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    organization_id = Column(String(50), ForeignKey('organizations.id'), nullable=False)
    owner_id = Column(String(50), ForeignKey('users.id'))
    folder_id = Column(String(50), ForeignKey('folders.id'))

    folder = relationship("Folder", back_populates="documents")
    permissions = relationship("DocumentPermission", back_populates="document",
                               cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Document(id='{self.id}', folder_id={self.folder_id!r})>"


# ============================================================================
# Permission Grants
# ============================================================================

class DocumentPermission(Base):
    __tablename__ = 'document_permissions'
    __table_args__ = (
        CheckConstraint("permission_type IN ('viewer', 'editor')",
                        name='ck_document_permissions_kind'),
        UniqueConstraint('document_id', 'user_id', 'permission_type',
                         name='uq_document_permissions_grant'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(50), ForeignKey('documents.id'), nullable=False)
    user_id = Column(String(50), ForeignKey('users.id'), nullable=False)
    permission_type = Column(String(20), nullable=False)

    document = relationship("Document", back_populates="permissions")

    def __repr__(self):
        return f"<DocumentPermission({self.document_id}: {self.user_id}={self.permission_type})>"


class FolderPermission(Base):
    """Grant on a folder, inherited by every document in the folder."""
    __tablename__ = 'folder_permissions'
    __table_args__ = (
        CheckConstraint("permission_type IN ('viewer', 'editor')",
                        name='ck_folder_permissions_kind'),
        UniqueConstraint('folder_id', 'user_id', 'permission_type',
                         name='uq_folder_permissions_grant'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    folder_id = Column(String(50), ForeignKey('folders.id'), nullable=False)
    user_id = Column(String(50), ForeignKey('users.id'), nullable=False)
    permission_type = Column(String(20), nullable=False)

    folder = relationship("Folder", back_populates="permissions")

    def __repr__(self):
        return f"<FolderPermission({self.folder_id}: {self.user_id}={self.permission_type})>"
