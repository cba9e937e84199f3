# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School and school membership models."""

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, String, UniqueConstraint, false
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from martialbase.infrastructure.database.models.base import Base, TimestampMixin, uuid_pk
from martialbase.infrastructure.database.models.organisation import Organisation
from martialbase.infrastructure.database.models.person import Person


class School(Base, TimestampMixin):
    """School run by an organisation."""

    __tablename__ = "schools"

    id: Mapped[str] = uuid_pk()
    organisation_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("organisations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(60), nullable=False)

    organisation: Mapped[Organisation] = relationship(lazy="joined")


class SchoolStudent(Base, TimestampMixin):
    """Membership of a person in a school.

    A membership with an inactive_date is kept for history but no longer
    grants anything.
    """

    __tablename__ = "school_students"
    __table_args__ = (UniqueConstraint("school_id", "person_id", name="uq_school_students_school_person"),)

    id: Mapped[str] = uuid_pk()
    school_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
    )
    person_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_instructor: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    is_secretary: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    inactive_date: Mapped[date | None] = mapped_column(Date)

    person: Mapped[Person] = relationship(lazy="joined")
