"""
Export views for the ops dashboard.

Exports read the live ledger:
- no re-scoring on export
- the flagged predicate is the same one the flagged list uses
"""
from __future__ import annotations

from datetime import datetime, timezone

from django.http import HttpRequest, HttpResponse
from django.views.decorators.http import require_GET

from accounts.decorators import api_staff_required
from fraud import reporting, services
from fraud.decorators import json_api


def _filename_ts() -> str:
    """
    Build a UTC timestamp for the export filename.

    Returns:
        Timestamp string YYYYMMDD-HHMMSS.
    """
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")


@json_api
@require_GET
@api_staff_required
def export_flagged_csv(request: HttpRequest) -> HttpResponse:
    """
    Export flagged transactions, highest score first.

    Rules:
    - 400 if nothing is flagged yet
    - CSV includes headers
    - flags are joined with "; "

    Args:
        request: Django request.

    Returns:
        CSV download response.
    """
    ledger = services.get_workflow().ledger
    flagged = ledger.list_flagged(services.flagged_threshold())
    if not flagged:
        return HttpResponse(
            "No flagged transactions to export.",
            status=400,
            content_type="text/plain; charset=utf-8",
        )

    frame = reporting.flagged_export_frame(flagged)
    csv_text = frame.to_csv(index=False, lineterminator="\n")

    filename = f"flagged-transactions-{_filename_ts()}.csv"
    resp = HttpResponse(csv_text, content_type="text/csv; charset=utf-8")
    resp["Content-Disposition"] = f'attachment; filename="{filename}"'
    resp["Cache-Control"] = "no-store"
    return resp
