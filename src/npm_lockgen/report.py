"""Batch report aggregation and schema-friendly output."""

from __future__ import annotations

from typing import Any

WRITTEN = "written"
PRINTED = "printed"
SKIPPED = "skipped"
FAILED = "failed"


def project_result(
    path: str, status: str, entries: int = 0, error: str | None = None
) -> dict[str, Any]:
    result: dict[str, Any] = {"path": path, "status": status, "entries": entries}
    if error is not None:
        result["error"] = error
    return result


def aggregate(projects: list[dict[str, Any]]) -> dict[str, Any]:
    """Aggregate per-root outcomes into a single report.

    The input ``projects`` is expected to be a list of dicts with at least
    ``path`` and ``status`` keys, as returned by :func:`project_result`.
    Totals count roots per status; ``hasFailures`` drives the CLI exit code.
    """

    def count(status: str) -> int:
        return sum(1 for p in projects if p.get("status") == status)

    failed = count(FAILED)
    report: dict[str, Any] = {
        "version": "1",
        "hasFailures": failed > 0,
        "projects": projects,
        "totals": {
            "projects": len(projects),
            "written": count(WRITTEN) + count(PRINTED),
            "skipped": count(SKIPPED),
            "failed": failed,
        },
    }

    return report
