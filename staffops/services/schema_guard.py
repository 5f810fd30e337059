from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine


@dataclass(frozen=True, slots=True)
class SchemaGuardResult:
    ok: bool
    checked_at_utc: datetime
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "checked_at_utc": self.checked_at_utc.isoformat(),
            "issues": list(self.issues),
            "warnings": list(self.warnings),
        }


REQUIRED_TABLE_COLUMNS: dict[str, set[str]] = {
    "events": {"id", "created_by", "status"},
    "shifts": {"id", "event_id", "staff_id", "assignment_type", "status", "responded_at"},
    "time_entries": {"id", "shift_id", "staff_id", "clock_in", "clock_out", "total_minutes", "status"},
    "notifications": {"id", "user_id", "type", "is_read", "related_id"},
    "staff_profiles": {"user_id", "role"},
}

# One active time entry per staff member.
REQUIRED_UNIQUE_INDEXES: dict[str, str] = {
    "time_entries": "uq_time_entries_active_staff",
}


def verify_runtime_schema(engine: Engine) -> SchemaGuardResult:
    issues: list[str] = []
    warnings: list[str] = []
    checked_at_utc = datetime.now(timezone.utc)
    inspector = inspect(engine)

    for table_name, required_columns in REQUIRED_TABLE_COLUMNS.items():
        try:
            column_names = {str(item.get("name")) for item in inspector.get_columns(table_name)}
        except Exception as exc:
            issues.append(f"TABLE_UNREADABLE:{table_name}:{exc.__class__.__name__}")
            continue

        missing_columns = sorted(item for item in required_columns if item not in column_names)
        if missing_columns:
            issues.append(f"MISSING_COLUMNS:{table_name}:{','.join(missing_columns)}")

    for table_name, index_name in REQUIRED_UNIQUE_INDEXES.items():
        try:
            indexes = inspector.get_indexes(table_name)
        except Exception as exc:
            issues.append(f"INDEX_UNREADABLE:{table_name}:{exc.__class__.__name__}")
            continue
        match = next((item for item in indexes if item.get("name") == index_name), None)
        if match is None:
            issues.append(f"MISSING_INDEX:{table_name}:{index_name}")
        elif not match.get("unique"):
            issues.append(f"INDEX_NOT_UNIQUE:{table_name}:{index_name}")

    try:
        with engine.connect() as connection:
            row = connection.execute(text("SELECT version_num FROM alembic_version LIMIT 1")).scalar()
            if not (str(row).strip() if row is not None else ""):
                warnings.append("ALEMBIC_VERSION_EMPTY")
    except Exception as exc:
        warnings.append(f"ALEMBIC_VERSION_CHECK_FAILED:{exc.__class__.__name__}")

    return SchemaGuardResult(
        ok=len(issues) == 0,
        checked_at_utc=checked_at_utc,
        issues=issues,
        warnings=warnings,
    )
