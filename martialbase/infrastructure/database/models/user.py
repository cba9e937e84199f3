# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User account and role models."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from martialbase.infrastructure.database.models.base import Base, TimestampMixin, uuid_pk
from martialbase.infrastructure.database.models.person import Person


class Role(Base):
    """Named capability group."""

    __tablename__ = "roles"

    id: Mapped[str] = uuid_pk()
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)


class UserRole(Base):
    """Assignment of a role to a user account."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),)

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
    )

    role: Mapped[Role] = relationship(lazy="joined")


class User(Base, TimestampMixin):
    """Internal account linked to an external identity.

    A null external_subject means the account is blocked or has not yet
    been claimed through its invitation code. Accounts are never deleted
    when blocked.
    """

    __tablename__ = "users"

    id: Mapped[str] = uuid_pk()
    person_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    external_subject: Mapped[str | None] = mapped_column(String(68), unique=True, index=True)
    invitation_code: Mapped[str | None] = mapped_column(String(7), unique=True)

    person: Mapped[Person] = relationship(lazy="joined")
    user_roles: Mapped[list[UserRole]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def role_names(self) -> set[str]:
        """Names of the roles assigned to this account."""
        return {user_role.role.name for user_role in self.user_roles}
