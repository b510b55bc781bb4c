"""
Audit logger for hierarchy creation runs.

Persists one JSON line per executed run for compliance and debugging.
"""
import json
import sys
from datetime import datetime
from typing import Dict, Any
from pathlib import Path


class AuditLogger:
    """Audit logger for materialization runs."""

    REQUIRED_FIELDS = [
        "run_id",
        "project_key",
        "shape",
        "checksum",
        "planned",
        "created_keys",
        "error_node_ids",
        "result"
    ]

    def __init__(self, log_dir: str = "audit_logs"):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory to store audit logs (default: "audit_logs")
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def log_run(self, event: Dict[str, Any]) -> None:
        """
        Log a run to persistent storage.

        Persists:
        - run_id
        - project_key, shape
        - checksum (plan checksum)
        - planned (number of nodes attempted)
        - created_keys, error_node_ids
        - result (success | partial | failed | cancelled)

        Args:
            event: Event dictionary with required fields

        Raises:
            ValueError: If a required field is missing
        """
        for field in self.REQUIRED_FIELDS:
            if field not in event:
                raise ValueError(f"Missing required audit field: {field}")

        log_entry = {"timestamp": datetime.now().isoformat()}
        log_entry.update({field: event.get(field) for field in self.REQUIRED_FIELDS})
        log_entry["executed_at"] = event.get("executed_at") or log_entry["timestamp"]

        # One file per day for easier management
        log_date = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{log_date}.jsonl"

        try:
            with open(log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(log_entry) + "\n")
        except OSError as e:
            # Log to stderr if file write fails (don't fail the operation)
            print(f"Failed to write audit log: {e}", file=sys.stderr)
