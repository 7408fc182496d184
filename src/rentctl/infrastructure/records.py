"""Row <-> record mapping for the ``agreements`` table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from rentctl.domain.agreement import Agreement
from rentctl.infrastructure.database.schema import agreements

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row

# Columns that make up the public record shape.
RECORD_COLUMNS = (
    agreements.c.id,
    agreements.c.student_name,
    agreements.c.parent_name,
    agreements.c.address,
    agreements.c.phone_number,
    agreements.c.loan_date,
    agreements.c.parent_signature,
    agreements.c.student_signature,
    agreements.c.instrument,
    agreements.c.brand,
    agreements.c.defects,
    agreements.c.submitted_by,
    agreements.c.created_at,
)


def row_to_agreement(row: Row[Any]) -> Agreement:
    return Agreement.model_validate(dict(row._mapping))


def load_agreements(conn: Connection) -> list[Agreement]:
    """All agreements, newest first."""
    rows = conn.execute(
        select(*RECORD_COLUMNS).order_by(agreements.c.created_at.desc(), agreements.c.seq.desc())
    ).fetchall()
    return [row_to_agreement(r) for r in rows]


def load_agreement(conn: Connection, agreement_id: str) -> Agreement | None:
    row = conn.execute(select(*RECORD_COLUMNS).where(agreements.c.id == agreement_id)).first()
    return row_to_agreement(row) if row is not None else None
