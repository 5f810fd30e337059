#!/usr/bin/env python
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from staffops.settings import get_settings

EXPECTED_HEAD = "0001_initial"


def run_checks(engine: Engine) -> dict[str, Any]:
    report: dict[str, Any] = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "checks": [],
    }

    def add(name: str, status: str, details: dict[str, Any]) -> None:
        report["checks"].append(
            {
                "name": name,
                "status": status,
                "details": details,
            }
        )

    tables = set(inspect(engine).get_table_names())
    with engine.connect() as conn:
        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add("alembic_version", "ok" if current_versions else "fail", {"current": current_versions})
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        if "time_entries" in tables:
            duplicate_active_entries = conn.execute(
                text(
                    """
                    select staff_id, count(*)
                    from time_entries
                    where status = 'active'
                    group by staff_id
                    having count(*) > 1
                    """
                )
            ).fetchall()
            add(
                "duplicate_active_time_entry",
                "fail" if duplicate_active_entries else "ok",
                {"rows": [list(row) for row in duplicate_active_entries]},
            )

        if "shifts" in tables:
            held_without_staff = conn.execute(
                text(
                    """
                    select id
                    from shifts
                    where status in ('pending', 'confirmed') and staff_id is null
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "held_shift_without_staff",
                "fail" if held_without_staff else "ok",
                {"sample_ids": [row[0] for row in held_without_staff]},
            )

            open_with_staff = conn.execute(
                text(
                    """
                    select id
                    from shifts
                    where status = 'open' and staff_id is not null
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "open_shift_with_staff",
                "warn" if open_with_staff else "ok",
                {"sample_ids": [row[0] for row in open_with_staff]},
            )

            orphan_shifts = conn.execute(
                text(
                    """
                    select s.id
                    from shifts s
                    left join events e on e.id = s.event_id
                    where e.id is null
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "shift_orphan_event",
                "fail" if orphan_shifts else "ok",
                {"sample_ids": [row[0] for row in orphan_shifts]},
            )

    return report


def run() -> dict[str, Any]:
    return run_checks(create_engine(get_settings().database_url))


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
