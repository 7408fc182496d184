"""SQLAlchemy Core table definitions for the agreement store.

One document collection (``agreements``) plus two bookkeeping tables:
``store_meta`` holds the global write revision used by the change feed,
and ``agreement_events`` is the write-ahead log for lifecycle hooks.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

agreements = Table(
    "agreements",
    metadata,
    # Insertion sequence: display-order tie-breaker, never exposed.
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", Text, nullable=False, unique=True),
    Column("student_name", Text, nullable=False),
    Column("parent_name", Text, nullable=False),
    Column("address", Text, nullable=False),
    Column("phone_number", Text, nullable=False),
    Column("loan_date", Text, nullable=False),  # YYYY-MM-DD
    Column("parent_signature", Text, nullable=False),
    Column("student_signature", Text, nullable=False),
    Column("instrument", Text),
    Column("brand", Text),
    Column("defects", Text),
    Column("submitted_by", Text),
    Column("created_at", Text, nullable=False),  # server-assigned
    Column("idempotency_key", Text, unique=True),
)

Index("ix_agreements_created_at", agreements.c.created_at)

store_meta = Table(
    "store_meta",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Integer, nullable=False, default=0, server_default="0"),
)

agreement_events = Table(
    "agreement_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)
