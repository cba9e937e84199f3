# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Person model."""

from datetime import date

from sqlalchemy import Date, String
from sqlalchemy.orm import Mapped, mapped_column

from martialbase.infrastructure.database.models.base import Base, TimestampMixin, uuid_pk


class Person(Base, TimestampMixin):
    """A person known to one or more organisations."""

    __tablename__ = "people"

    id: Mapped[str] = uuid_pk()
    title: Mapped[str | None] = mapped_column(String(15))
    first_name: Mapped[str] = mapped_column(String(15), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(35))
    last_name: Mapped[str] = mapped_column(String(25), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    email: Mapped[str | None] = mapped_column(String(45))
    mobile_no: Mapped[str | None] = mapped_column(String(30))
