"""Telemetry recorder for goal reconciliation.

Counts setup/teardown operations and goal writes per account. When an output
directory is given, each record is appended as a JSON line and an aggregated
summary is rewritten next to it, for operators to inspect locally.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class ReconciliationTelemetry:
    output_dir: Optional[Path] = None
    metrics_file: str = "reconciliation.log"
    summary_file: str = "reconciliation_summary.json"
    _stats: Dict[str, Dict[str, int]] = field(default_factory=dict)
    _accounts: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def record(
        self,
        operation: str,
        account_id: Optional[str] = None,
        *,
        goal_writes: int = 0,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        entry: Dict[str, Any] = {
            "operation": operation,
            "goal_writes": goal_writes,
            "timestamp": datetime.utcnow().isoformat(),
        }
        if account_id is not None:
            entry["account_id"] = account_id
            if operation in ("setup", "teardown"):
                self._accounts[account_id] = operation
        if metadata:
            entry["metadata"] = dict(metadata)

        stats = self._stats.setdefault(operation, {"count": 0, "goal_writes": 0})
        stats["count"] += 1
        stats["goal_writes"] += goal_writes

        if self.output_dir is None:
            return

        path = self.output_dir / self.metrics_file
        with path.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(entry) + "\n")

        summary_path = self.output_dir / self.summary_file
        summary_path.write_text(json.dumps(self.summary(), indent=2))

    def count(self, operation: str) -> int:
        return self._stats.get(operation, {}).get("count", 0)

    def last_operation(self, account_id: str) -> Optional[str]:
        return self._accounts.get(account_id)

    def summary(self) -> Dict[str, Any]:
        total_ops = sum(s["count"] for s in self._stats.values())
        total_writes = sum(s["goal_writes"] for s in self._stats.values())
        return {
            "overall": {
                "operations": total_ops,
                "goal_writes": total_writes,
                "accounts": len(self._accounts),
            },
            "operations": {name: dict(stats) for name, stats in self._stats.items()},
            "active_accounts": sorted(
                account for account, op in self._accounts.items() if op == "setup"
            ),
        }


__all__ = ["ReconciliationTelemetry"]
