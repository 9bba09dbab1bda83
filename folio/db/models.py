"""SQLAlchemy models for accounts and their documents."""
from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .session import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    handle = Column(String(50), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    credential_hash = Column(Text, nullable=False)
    role = Column(String(16), default="standard", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # No cascade and no database-level foreign key: purging an account leaves
    # its documents in place, pointing at a missing owner.
    documents = relationship(
        "Document",
        back_populates="owner",
        primaryjoin="Account.id == foreign(Document.owner_id)",
        passive_deletes="all",
    )


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), unique=True, nullable=False)
    body = Column(Text, nullable=False, default="")
    owner_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    owner = relationship(
        "Account",
        back_populates="documents",
        primaryjoin="Account.id == foreign(Document.owner_id)",
    )
