"""Agreement record models and lifecycle state.

An agreement has exactly two lifecycle states, distinguished solely by
whether ``instrument`` is set:

- Pending: submitted by a student/parent, awaiting assignment.
- Completed: an administrator attached instrument, brand, and defects.

INVARIANT: Only the assignment fields are ever written after creation.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AgreementState(StrEnum):
    """Lifecycle state of an agreement."""

    PENDING = "pending"
    COMPLETED = "completed"


# Fields written by the assignment step; everything else is immutable.
ASSIGNMENT_FIELDS: tuple[str, ...] = ("instrument", "brand", "defects")

# Required submission fields, in display order, with their messages.
REQUIRED_FIELDS: dict[str, str] = {
    "student_name": "Student Name is required.",
    "parent_name": "Parent/Guardian Name is required.",
    "address": "Address is required.",
    "phone_number": "Phone Number is required.",
    "parent_signature": "Parent/Guardian signature is required.",
    "student_signature": "Student signature is required.",
}

AGREEMENT_TERMS: tuple[str, ...] = (
    "The student will practice as directed by the music teacher.",
    "The student and parent/guardian will be personally responsible for any "
    "damage to this instrument while in the student's care.",
    "The student and parent/guardian will return this instrument upon request "
    "of the music teacher, in as good condition as received, ordinary wear "
    "and depreciation expected.",
)


class _RecordModel(BaseModel):
    """Shared config: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AgreementInput(_RecordModel):
    """Client-supplied fields for a new agreement.

    ``id`` and ``created_at`` are absent: the store assigns both.
    ``idempotency_key`` is consumed by the store and never returned.
    """

    student_name: str
    parent_name: str
    address: str
    phone_number: str
    loan_date: str
    parent_signature: str
    student_signature: str
    instrument: str | None = None
    brand: str | None = None
    defects: str | None = None
    submitted_by: str | None = None
    idempotency_key: str | None = None


class Agreement(_RecordModel):
    """A persisted agreement as delivered by the store."""

    id: str
    student_name: str
    parent_name: str
    address: str
    phone_number: str
    loan_date: str
    parent_signature: str
    student_signature: str
    instrument: str | None = None
    brand: str | None = None
    defects: str | None = None
    submitted_by: str | None = None
    created_at: str

    @property
    def state(self) -> AgreementState:
        if self.instrument is None:
            return AgreementState.PENDING
        return AgreementState.COMPLETED

    @property
    def is_pending(self) -> bool:
        return self.state is AgreementState.PENDING

    def to_document(self, *, include_signatures: bool = True) -> dict[str, object]:
        """Return the camelCase wire shape of this record."""
        exclude = None if include_signatures else {"parent_signature", "student_signature"}
        return self.model_dump(by_alias=True, exclude=exclude)


def partition(
    agreements: Iterable[Agreement],
) -> tuple[tuple[Agreement, ...], tuple[Agreement, ...]]:
    """Split *agreements* into ``(pending, completed)``, preserving order."""
    pending: list[Agreement] = []
    completed: list[Agreement] = []
    for agreement in agreements:
        if agreement.is_pending:
            pending.append(agreement)
        else:
            completed.append(agreement)
    return tuple(pending), tuple(completed)
