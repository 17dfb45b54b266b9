"""
Offline data quality report for a local node dataset.

Goal: a deterministic, network-free answer to "is this dataset file usable by the local store?"
Used by `scripts/dataset_validate.py` before pointing `FIBERVIABILITY_LOCAL_DATASET` at a file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fiberviability.store.base import usable_coordinates


@dataclass(frozen=True)
class Issue:
    severity: str  # "info" | "warning" | "error"
    code: str
    message: str
    count: int = 1
    sample: list[str] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "count": int(self.count),
            "sample": list(self.sample or []),
        }


def _row_label(index: int, raw: dict[str, Any]) -> str:
    name = raw.get("nome", raw.get("name"))
    return f"#{index}:{name}" if name else f"#{index}"


def dataset_issues(payload: Any) -> list[Issue]:
    if not isinstance(payload, list):
        return [Issue(severity="error", code="DATASET_NOT_ARRAY", message="Dataset root must be a JSON array.")]

    issues: list[Issue] = []
    not_objects: list[str] = []
    missing_name: list[str] = []
    missing_coords: list[str] = []
    out_of_range: list[str] = []
    transposed: list[str] = []
    names: list[str] = []

    for index, raw in enumerate(payload):
        if not isinstance(raw, dict):
            not_objects.append(f"#{index}")
            continue
        label = _row_label(index, raw)
        name = raw.get("nome", raw.get("name"))
        if name is None or not str(name).strip():
            missing_name.append(label)
        else:
            names.append(str(name))

        coords = usable_coordinates(raw.get("geometry"))
        if coords is None:
            missing_coords.append(label)
            continue
        lng, lat = coords
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            out_of_range.append(label)
            # [lat, lng] stored by mistake: the second value only fits as a longitude.
            if -90 <= lng <= 90 and -180 <= lat <= 180:
                transposed.append(label)

    dup = sorted({n for n in names if names.count(n) > 1})

    if not_objects:
        issues.append(
            Issue(
                severity="error",
                code="DATASET_ROW_NOT_OBJECT",
                message="Some rows are not JSON objects.",
                count=len(not_objects),
                sample=not_objects[:8],
            )
        )
    if out_of_range:
        issues.append(
            Issue(
                severity="error",
                code="DATASET_BAD_COORDS",
                message="Some rows have out-of-range coordinates (expected [lng, lat]).",
                count=len(out_of_range),
                sample=out_of_range[:8],
            )
        )
    if transposed:
        issues.append(
            Issue(
                severity="warning",
                code="DATASET_COORDS_TRANSPOSED",
                message="Some coordinates look like [lat, lng] instead of [lng, lat].",
                count=len(transposed),
                sample=transposed[:8],
            )
        )
    if missing_name:
        issues.append(
            Issue(
                severity="warning",
                code="DATASET_MISSING_NAME",
                message="Some rows have no name.",
                count=len(missing_name),
                sample=missing_name[:8],
            )
        )
    if dup:
        issues.append(
            Issue(
                severity="warning",
                code="DATASET_DUPLICATE_NAME",
                message="Duplicate node names (they count once in `unique`).",
                count=len(dup),
                sample=dup[:8],
            )
        )
    if missing_coords:
        issues.append(
            Issue(
                severity="info",
                code="DATASET_MISSING_COORDS",
                message="Some rows have no usable coordinate pair and are skipped by lookups.",
                count=len(missing_coords),
                sample=missing_coords[:8],
            )
        )
    return issues


def build_dataset_report(payload: Any) -> dict[str, Any]:
    issues = dataset_issues(payload)

    severity_rank = {"error": 3, "warning": 2, "info": 1}
    worst = "info"
    for i in issues:
        if severity_rank.get(i.severity, 0) > severity_rank.get(worst, 0):
            worst = i.severity

    return {
        "overall": {"severity": worst, "issue_count": len(issues)},
        "rows": len(payload) if isinstance(payload, list) else 0,
        "issues": [i.as_dict() for i in issues],
    }
