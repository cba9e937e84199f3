# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-06

This migration creates all tables based on the SQLAlchemy models in
martialbase/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _fk(name: str, target: str, ondelete: str, **kwargs) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey(target, ondelete=ondelete),
        **kwargs,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # 1. people, users and roles
    # ==========================================================================
    op.create_table(
        "people",
        _id(),
        sa.Column("title", sa.String(15), nullable=True),
        sa.Column("first_name", sa.String(15), nullable=False),
        sa.Column("middle_name", sa.String(35), nullable=True),
        sa.Column("last_name", sa.String(25), nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("email", sa.String(45), nullable=True),
        sa.Column("mobile_no", sa.String(30), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "roles",
        _id(),
        sa.Column("name", sa.String(50), unique=True, nullable=False),
    )

    op.create_table(
        "users",
        _id(),
        _fk("person_id", "people.id", "CASCADE", nullable=False, unique=True),
        sa.Column("external_subject", sa.String(68), unique=True, nullable=True),
        sa.Column("invitation_code", sa.String(7), unique=True, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_external_subject", "users", ["external_subject"])

    op.create_table(
        "user_roles",
        _id(),
        _fk("user_id", "users.id", "CASCADE", nullable=False),
        _fk("role_id", "roles.id", "CASCADE", nullable=False),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )

    # ==========================================================================
    # 2. organisations and schools
    # ==========================================================================
    op.create_table(
        "organisations",
        _id(),
        sa.Column("initials", sa.String(8), nullable=False),
        sa.Column("name", sa.String(60), nullable=False),
        _fk("parent_id", "organisations.id", "SET NULL", nullable=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_organisations_parent_id", "organisations", ["parent_id"])

    op.create_table(
        "organisation_people",
        _fk("organisation_id", "organisations.id", "CASCADE", primary_key=True),
        _fk("person_id", "people.id", "CASCADE", primary_key=True),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_organisation_people_person_id", "organisation_people", ["person_id"])

    op.create_table(
        "schools",
        _id(),
        _fk("organisation_id", "organisations.id", "RESTRICT", nullable=False),
        sa.Column("name", sa.String(60), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_schools_organisation_id", "schools", ["organisation_id"])

    op.create_table(
        "school_students",
        _id(),
        _fk("school_id", "schools.id", "CASCADE", nullable=False),
        _fk("person_id", "people.id", "CASCADE", nullable=False),
        sa.Column("is_instructor", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_secretary", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("inactive_date", sa.Date, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("school_id", "person_id", name="uq_school_students_school_person"),
    )
    op.create_index("ix_school_students_person_id", "school_students", ["person_id"])

    # ==========================================================================
    # 3. arts and grades
    # ==========================================================================
    op.create_table(
        "arts",
        _id(),
        sa.Column("name", sa.String(40), unique=True, nullable=False),
    )

    op.create_table(
        "art_grades",
        _id(),
        _fk("art_id", "arts.id", "CASCADE", nullable=False),
        _fk("organisation_id", "organisations.id", "CASCADE", nullable=False),
        sa.Column("grade_level", sa.Integer, nullable=False),
        sa.Column("description", sa.String(20), nullable=False),
    )
    op.create_index("ix_art_grades_art_id", "art_grades", ["art_id"])
    op.create_index("ix_art_grades_organisation_id", "art_grades", ["organisation_id"])

    # ==========================================================================
    # 4. documents
    # ==========================================================================
    op.create_table(
        "document_types",
        _id(),
        _fk("organisation_id", "organisations.id", "CASCADE", nullable=False),
        sa.Column("reference", sa.String(20), nullable=True),
        sa.Column("description", sa.String(60), nullable=False),
        sa.Column("default_expiry_days", sa.Integer, nullable=True),
    )
    op.create_index("ix_document_types_organisation_id", "document_types", ["organisation_id"])

    op.create_table(
        "documents",
        _id(),
        _fk("document_type_id", "document_types.id", "RESTRICT", nullable=False),
        sa.Column("filing_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("document_date", sa.Date, nullable=True),
        sa.Column("reference", sa.String(20), nullable=True),
        sa.Column("url", sa.String(250), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "person_documents",
        _fk("person_id", "people.id", "CASCADE", primary_key=True),
        _fk("document_id", "documents.id", "CASCADE", primary_key=True),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("person_documents")
    op.drop_table("documents")
    op.drop_table("document_types")
    op.drop_table("art_grades")
    op.drop_table("arts")
    op.drop_table("school_students")
    op.drop_table("schools")
    op.drop_table("organisation_people")
    op.drop_table("organisations")
    op.drop_table("user_roles")
    op.drop_table("users")
    op.drop_table("roles")
    op.drop_table("people")
