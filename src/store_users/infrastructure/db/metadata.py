"""SQLAlchemy metadata definitions for user record tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()

users = sa.Table(
    "users",
    metadata,
    sa.Column("id", sa.Text(), primary_key=True, nullable=False),
    sa.Column("email", sa.Text(), nullable=False),
    sa.Column("last_name", sa.Text(), nullable=True),
    sa.Column("password_hash", sa.Text(), nullable=True),
    sa.Column("api_token", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("metadata", sa.JSON(none_as_null=True), nullable=True),
    sa.CheckConstraint("updated_at >= created_at", name="ck_users_updated_after_created"),
)

sa.Index(
    "uq_users_email_live",
    users.c.email,
    unique=True,
    postgresql_where=users.c.deleted_at.is_(None),
    sqlite_where=users.c.deleted_at.is_(None),
)
sa.Index("ix_users_deleted_at", users.c.deleted_at)
