"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from rentctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from rentctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids where there are ids."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    rows = [*result.data.get("pending", []), *result.data.get("completed", [])]
    if rows:
        return "\n".join(str(row["id"]) for row in rows)
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="rent.ok"), Text(f"  {result.op}", style="rent.op"))


def _field(console: Console, key: str, value: Any) -> None:
    if isinstance(value, (dict, list)):
        value = json.dumps(value, separators=(",", ":"))
    console.print(Text(f"  {key}: ", style="rent.key"), Text(str(value)), sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    telemetry = (result.meta or {}).get("telemetry")
    if telemetry:
        console.print(
            Text(f"  {telemetry['name']} {telemetry['duration_ms']}ms", style="rent.key")
        )


def _agreement_table(title: str, rows: list[dict[str, Any]], *, completed: bool) -> Table:
    style = "rent.completed" if completed else "rent.pending"
    table = Table(title=f"{title} ({len(rows)})", title_style=style, show_lines=False)
    table.add_column("ID", style="rent.id", no_wrap=True)
    table.add_column("Student")
    table.add_column("Parent/Guardian")
    table.add_column("Phone")
    table.add_column("Loan Date")
    if completed:
        table.add_column("Instrument")
        table.add_column("Brand/Serial")
        table.add_column("Defects")
    for row in rows:
        cells = [
            row["id"],
            row["studentName"],
            row["parentName"],
            row["phoneNumber"],
            row["loanDate"],
        ]
        if completed:
            cells += [row.get("instrument") or "", row.get("brand") or "", row.get("defects") or ""]
        table.add_row(*cells)
    return table


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    error = result.error
    message = error.message if error else "Unknown error"
    console.print(Text("ERROR", style="rent.error"), Text(f"  {result.op} — {message}"))
    if error is None:
        return
    for name, field_message in error.fields.items():
        console.print(Text(f"  {name}: ", style="rent.key"), Text(field_message), sep="")
    if error.retryable:
        console.print(Text("  The operation can be retried.", style="rent.warning"))
    if verbose:
        console.print(Text(f"  code: {error.code}", style="rent.key"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


def _render_listing(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    if "pending" in data:
        console.print(_agreement_table("Pending", data["pending"], completed=False))
    if "completed" in data:
        console.print(_agreement_table("Completed", data["completed"], completed=True))
    if verbose:
        _field(console, "revision", data.get("revision"))
        _render_meta(console, result)


def _render_agreement(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    doc = result.data["agreement"]
    lines = [
        f"Student Name: {doc['studentName']}",
        f"Parent/Guardian Name: {doc['parentName']}",
        f"Address: {doc['address']}",
        f"Phone Number: {doc['phoneNumber']}",
        f"Loan Date: {doc['loanDate']}",
        f"Instrument: {doc.get('instrument') or '(pending)'}",
        f"Brand and Serial #: {doc.get('brand') or '(pending)'}",
        f"Conditions/Defects: {doc.get('defects') or ''}",
        "",
        "Student and Parent/Guardian agree to the following:",
        *(f"  {i}. {term}" for i, term in enumerate(result.data["terms"], start=1)),
        "",
        f"Parent/Guardian signature: {'on file' if result.data['parent_signed'] else 'missing'}",
        f"Student signature: {'on file' if result.data['student_signed'] else 'missing'}",
    ]
    title = f"{result.data['district']} Musical Instrument Use Agreement"
    console.print(Panel("\n".join(lines), title=title, subtitle=doc["id"]))
    if verbose:
        _field(console, "submittedBy", doc.get("submittedBy"))
        _field(console, "createdAt", doc.get("createdAt"))


_OP_RENDERERS = {
    "list_agreements": _render_listing,
    "show_agreement": _render_agreement,
}
