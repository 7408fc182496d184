"""Command: submit a rental agreement as a student/parent."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from rentctl.commands._base import RentCommand

if TYPE_CHECKING:
    from rentctl.commands._context import AppContext

_STROKES = click.Path(exists=True, dir_okay=False, path_type=Path)


def _signature_payload(path: Path | None, option: str) -> str | None:
    """Rasterize a stroke file; an empty pad counts as no signature."""
    from rentctl.domain.signature import EmptySignatureError, load_strokes

    if path is None:
        return None
    try:
        return load_strokes(path).save()
    except EmptySignatureError:
        return None
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint=f"'{option}'") from exc


@click.command(
    cls=RentCommand,
    examples="""\
  rentctl submit --student-name "Alex Lee" --parent-name "Jamie Lee" \\
      --address "12 Elm St" --phone-number 555-0100 \\
      --parent-signature parent.json --student-signature student.json
  rentctl submit ... --loan-date 2026-09-01 --json""",
)
@click.option("--student-name", default="", help="Student's full name.")
@click.option("--parent-name", default="", help="Parent/guardian's full name.")
@click.option("--address", default="", help="Home address.")
@click.option("--phone-number", default="", help="Contact phone number.")
@click.option("--loan-date", default=None, help="Loan date (YYYY-MM-DD); defaults to today.")
@click.option("--parent-signature", type=_STROKES, default=None, help="Parent stroke file (JSON).")
@click.option("--student-signature", type=_STROKES, default=None, help="Student stroke file (JSON).")
@click.option("--submission-key", default=None, help="Reuse to make a retried submit a no-op.")
@click.pass_obj
def submit(
    app: AppContext,
    student_name: str,
    parent_name: str,
    address: str,
    phone_number: str,
    loan_date: str | None,
    parent_signature: Path | None,
    student_signature: Path | None,
    submission_key: str | None,
) -> None:
    """Validate and submit a rental agreement (state: pending)."""
    from rentctl.services.submission import SubmissionForm, SubmissionService

    fields: dict[str, object] = {
        "student_name": student_name,
        "parent_name": parent_name,
        "address": address,
        "phone_number": phone_number,
        "loan_date": loan_date,
        "parent_signature": _signature_payload(parent_signature, "--parent-signature"),
        "student_signature": _signature_payload(student_signature, "--student-signature"),
    }
    if submission_key:
        fields["submission_key"] = submission_key

    app.emit(SubmissionService(app.session).submit(SubmissionForm(**fields)))
