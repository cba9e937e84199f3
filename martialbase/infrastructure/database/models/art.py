# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Martial art and grade models."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from martialbase.infrastructure.database.models.base import Base, uuid_pk


class Art(Base):
    """A martial art."""

    __tablename__ = "arts"

    id: Mapped[str] = uuid_pk()
    name: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)


class ArtGrade(Base):
    """A grade of an art as awarded by one organisation."""

    __tablename__ = "art_grades"

    id: Mapped[str] = uuid_pk()
    art_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("arts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organisation_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("organisations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    grade_level: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(20), nullable=False)

    art: Mapped[Art] = relationship(lazy="joined")
