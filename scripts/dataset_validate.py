from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from fiberviability.core.env import resolve_project_path
from fiberviability.quality.dataset import build_dataset_report


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Validate a local node dataset file (offline).")
    p.add_argument("--dataset", type=str, default="data/nodes.sample.json")
    p.add_argument("--json", action="store_true", help="Print the full report as JSON.")
    args = p.parse_args(argv)

    dataset_path = resolve_project_path(args.dataset)
    if not dataset_path.exists():
        print("Dataset file not found:", dataset_path)
        return 2

    try:
        payload = _read_json(dataset_path)
    except ValueError as exc:
        print("Dataset is not valid JSON:", exc)
        return 2

    report = build_dataset_report(payload)
    if args.json:
        print(json.dumps(report, ensure_ascii=False, indent=2))
    else:
        print("Dataset:", dataset_path)
        print("Rows:", report["rows"])
        for issue in report["issues"]:
            sample = ", ".join(issue["sample"])
            print(f"[{issue['severity']}] {issue['code']}: {issue['message']} count={issue['count']}", sample)

    if report["overall"]["severity"] == "error":
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
