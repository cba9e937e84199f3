# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organisation and organisation membership models."""

from sqlalchemy import Boolean, ForeignKey, String, false
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from martialbase.infrastructure.database.models.base import Base, TimestampMixin, uuid_pk
from martialbase.infrastructure.database.models.person import Person


class Organisation(Base, TimestampMixin):
    """Organisation node in the organisation forest.

    A parent is only ever assigned to an existing organisation, so the
    hierarchy cannot contain cycles created by insertion.
    """

    __tablename__ = "organisations"

    id: Mapped[str] = uuid_pk()
    initials: Mapped[str] = mapped_column(String(8), nullable=False)
    name: Mapped[str] = mapped_column(String(60), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("organisations.id", ondelete="SET NULL"),
        index=True,
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)


class OrganisationPerson(Base):
    """Membership of a person in an organisation."""

    __tablename__ = "organisation_people"

    organisation_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("organisations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    person_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("people.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)

    organisation: Mapped[Organisation] = relationship(lazy="joined")
    person: Mapped[Person] = relationship(lazy="joined")
