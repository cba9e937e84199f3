# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document, document type and person document models."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from martialbase.infrastructure.database.models.base import Base, uuid_pk
from martialbase.utils.datetime import utc_now


class DocumentType(Base):
    """Kind of document an organisation records, e.g. licence or insurance."""

    __tablename__ = "document_types"

    id: Mapped[str] = uuid_pk()
    organisation_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("organisations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reference: Mapped[str | None] = mapped_column(String(20))
    description: Mapped[str] = mapped_column(String(60), nullable=False)
    default_expiry_days: Mapped[int | None] = mapped_column(Integer)


class Document(Base):
    """A filed document."""

    __tablename__ = "documents"

    id: Mapped[str] = uuid_pk()
    document_type_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("document_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    filing_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    document_date: Mapped[date | None] = mapped_column(Date)
    reference: Mapped[str | None] = mapped_column(String(20))
    url: Mapped[str | None] = mapped_column(String(250))
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    document_type: Mapped[DocumentType] = relationship(lazy="joined")


class PersonDocument(Base):
    """Link between a person and a document filed for them."""

    __tablename__ = "person_documents"

    person_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("people.id", ondelete="CASCADE"),
        primary_key=True,
    )
    document_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("documents.id", ondelete="CASCADE"),
        primary_key=True,
    )

    document: Mapped[Document] = relationship(lazy="joined")
