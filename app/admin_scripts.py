"""Command-line helpers for inspecting the lookup log."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from app.config import get_lookup_log_path
from core.lookup_logger import read_lookup_log

LOOKUP_LOG_PATH = get_lookup_log_path()


def summarize_lookups(rows: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Count lookups per status and average the latency of successful ones."""

    by_status: Dict[str, int] = {}
    latencies: List[int] = []
    total = 0
    for row in rows:
        total += 1
        status = row.get("status") or "unknown"
        by_status[status] = by_status.get(status, 0) + 1
        if status == "ok" and isinstance(row.get("latency_ms"), int):
            latencies.append(row["latency_ms"])
    average = round(sum(latencies) / len(latencies)) if latencies else None
    return {"total": total, "by_status": by_status, "avg_ok_latency_ms": average}


def format_lookup_row(row: Dict[str, Any]) -> str:
    query = row.get("query") or ""
    if row.get("status") == "ok":
        return (
            f"[{row.get('timestamp')}] {query} -> "
            f"min {row.get('min_temp')} / max {row.get('max_temp')} "
            f"at ({row.get('latitude')}, {row.get('longitude')})"
        )
    return f"[{row.get('timestamp')}] {query} -> {row.get('status')}: {row.get('error')}"


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Lookup log helpers")
    sub = parser.add_subparsers(dest="command", required=True)

    recent_parser = sub.add_parser("recent", help="Print the latest lookups.")
    recent_parser.add_argument("--path", type=Path, default=LOOKUP_LOG_PATH)
    recent_parser.add_argument("--limit", type=int, default=10)
    recent_parser.add_argument("--failures", action="store_true", help="Only show failed lookups.")

    summary_parser = sub.add_parser("summary", help="Count lookups per status.")
    summary_parser.add_argument("--path", type=Path, default=LOOKUP_LOG_PATH)

    args = parser.parse_args(argv)
    if args.command == "recent":
        rows = read_lookup_log(args.path)
        if args.failures:
            rows = [row for row in rows if row.get("status") != "ok"]
        rows = rows[-args.limit:] if args.limit > 0 else []
        if not rows:
            print("No lookups recorded.")
        for row in rows:
            print(format_lookup_row(row))
    elif args.command == "summary":
        summary = summarize_lookups(read_lookup_log(args.path))
        statuses = ", ".join(f"{status}:{count}" for status, count in sorted(summary["by_status"].items()))
        print(f"{summary['total']} lookups ({statuses or 'none'}); avg ok latency: {summary['avg_ok_latency_ms']} ms")
    else:  # pragma: no cover - safeguarded by argparse
        parser.error("Unknown command")


if __name__ == "__main__":
    main()
