"""
Mealwise - Audit Logger.

Append-only JSONL record of estimate computations and export outcomes.
Locked estimates are hidden from users, so this is the only place their
confidence and missing-item counts can be inspected afterwards.

Usage:
    from mealwise.observability.audit_logger import AuditLogger

    audit = AuditLogger(enabled=True, log_dir=Path("audit_logs"))
    audit.estimate_computed(plan_id, estimate)
    audit.export_rendered("csv", plan_id, filename, size_bytes=512)

Log format (JSONL):
    {"ts": "2026-01-01T17:30:00+00:00", "event": "export_rendered", "kind": "csv", ...}
"""

import json
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mealwise.budget.models import BudgetEstimate


# =============================================================================
# Configuration
# =============================================================================

# Max string length before truncation
MAX_STRING_LEN = 200

# Max list items to show
MAX_LIST_ITEMS = 5

# Max dict keys to show
MAX_DICT_KEYS = 12


# =============================================================================
# Truncation
# =============================================================================


def _truncate_value(value: Any, depth: int = 0) -> Any:
    """
    Truncate values for logging.

    - Strings > MAX_STRING_LEN get truncated with "..."
    - Lists > MAX_LIST_ITEMS show first N + count
    - Dicts > MAX_DICT_KEYS show first N keys + count
    """
    if depth > 3:
        return "<nested>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > MAX_STRING_LEN:
            return value[:MAX_STRING_LEN] + f"... ({len(value)} chars)"
        return value

    if isinstance(value, (list, tuple)):
        head = [_truncate_value(v, depth + 1) for v in value[:MAX_LIST_ITEMS]]
        if len(value) > MAX_LIST_ITEMS:
            head.append(f"... +{len(value) - MAX_LIST_ITEMS} more")
        return head

    if isinstance(value, dict):
        result = {}
        for key in list(value.keys())[:MAX_DICT_KEYS]:
            result[str(key)] = _truncate_value(value[key], depth + 1)
        if len(value) > MAX_DICT_KEYS:
            result["_truncated"] = f"+{len(value) - MAX_DICT_KEYS} keys"
        return result

    return str(value)[:MAX_STRING_LEN]


# =============================================================================
# Audit Logger
# =============================================================================


class AuditLogger:
    """Writes one JSON object per line. A disabled logger is a no-op."""

    def __init__(self, enabled: bool = False, log_dir: Path | str = Path("audit_logs")):
        self.enabled = enabled
        self.log_path: Path | None = None

        if not enabled:
            return

        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = log_dir / f"audit_{datetime.now(timezone.utc).strftime('%Y%m%d')}.jsonl"

    def _write(self, data: dict) -> None:
        if not self.enabled or self.log_path is None:
            return

        entry = {"ts": datetime.now(timezone.utc).isoformat(), **data}
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    # =========================================================================
    # Estimate Events
    # =========================================================================

    def estimate_computed(self, plan_id: str | None, estimate: "BudgetEstimate") -> None:
        """Log the full, unmasked estimate."""
        self._write({
            "event": "estimate_computed",
            "plan_id": plan_id,
            **estimate.to_audit_dict(),
        })

    # =========================================================================
    # Export Events
    # =========================================================================

    def export_rendered(self, kind: str, plan_id: str | None, filename: str, size_bytes: int) -> None:
        self._write({
            "event": "export_rendered",
            "kind": kind,
            "plan_id": plan_id,
            "filename": filename,
            "size_bytes": size_bytes,
        })

    def export_failed(self, kind: str, plan_id: str | None, error: str) -> None:
        self._write({
            "event": "export_failed",
            "kind": kind,
            "plan_id": plan_id,
            "error": _truncate_value(error),
        })

    def read_events(self) -> list[dict]:
        """All events written so far (empty when disabled)."""
        if self.log_path is None or not self.log_path.exists():
            return []
        with open(self.log_path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


@lru_cache
def get_audit_logger() -> AuditLogger:
    """Process-wide audit logger built from CoreSettings."""
    from mealwise.config import get_core_settings

    settings = get_core_settings()
    return AuditLogger(enabled=settings.mealwise_audit_log, log_dir=settings.mealwise_audit_dir)
