from __future__ import annotations

import unittest
from unittest.mock import patch

from staffops.services.schema_guard import REQUIRED_TABLE_COLUMNS, verify_runtime_schema
from tests.support import make_session_factory


class _FakeResult:
    def __init__(self, value):
        self._value = value

    def scalar(self):  # type: ignore[no-untyped-def]
        return self._value


class _FakeConnection:
    def __init__(self, version_value):
        self._version_value = version_value

    def __enter__(self):  # type: ignore[no-untyped-def]
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[no-untyped-def]
        return False

    def execute(self, _statement):  # type: ignore[no-untyped-def]
        return _FakeResult(self._version_value)


class _FakeEngine:
    def __init__(self, version_value):
        self._version_value = version_value

    def connect(self):  # type: ignore[no-untyped-def]
        return _FakeConnection(self._version_value)


class _FakeInspector:
    def __init__(self, *, columns_by_table: dict[str, set[str]], indexes: list[dict[str, object]]):
        self._columns_by_table = columns_by_table
        self._indexes = indexes

    def get_columns(self, table_name: str):  # type: ignore[no-untyped-def]
        columns = self._columns_by_table[table_name]
        return [{"name": item} for item in columns]

    def get_indexes(self, table_name: str):  # type: ignore[no-untyped-def]
        if table_name != "time_entries":
            return []
        return self._indexes


_ACTIVE_ENTRY_INDEX = {"name": "uq_time_entries_active_staff", "column_names": ["staff_id"], "unique": True}


class SchemaGuardTests(unittest.TestCase):
    def test_verify_runtime_schema_ok_when_schema_matches(self) -> None:
        fake_inspector = _FakeInspector(
            columns_by_table={name: set(columns) for name, columns in REQUIRED_TABLE_COLUMNS.items()},
            indexes=[_ACTIVE_ENTRY_INDEX],
        )

        with patch("staffops.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(_FakeEngine("0001_initial"))  # type: ignore[arg-type]

        self.assertTrue(result.ok)
        self.assertEqual(result.issues, [])
        self.assertEqual(result.warnings, [])

    def test_verify_runtime_schema_reports_missing_columns_and_index(self) -> None:
        columns = {name: set(columns) for name, columns in REQUIRED_TABLE_COLUMNS.items()}
        columns["shifts"] = {"id", "event_id"}
        fake_inspector = _FakeInspector(columns_by_table=columns, indexes=[])

        with patch("staffops.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(_FakeEngine(""))  # type: ignore[arg-type]

        self.assertFalse(result.ok)
        self.assertTrue(any(item.startswith("MISSING_COLUMNS:shifts:assignment_type") for item in result.issues))
        self.assertIn("MISSING_INDEX:time_entries:uq_time_entries_active_staff", result.issues)
        self.assertIn("ALEMBIC_VERSION_EMPTY", result.warnings)

    def test_non_unique_active_entry_index_is_an_issue(self) -> None:
        fake_inspector = _FakeInspector(
            columns_by_table={name: set(columns) for name, columns in REQUIRED_TABLE_COLUMNS.items()},
            indexes=[{**_ACTIVE_ENTRY_INDEX, "unique": False}],
        )

        with patch("staffops.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(_FakeEngine("0001_initial"))  # type: ignore[arg-type]

        self.assertEqual(result.issues, ["INDEX_NOT_UNIQUE:time_entries:uq_time_entries_active_staff"])

    def test_metadata_schema_passes_against_real_database(self) -> None:
        engine = make_session_factory().kw["bind"]

        result = verify_runtime_schema(engine)

        self.assertTrue(result.ok, result.issues)
        self.assertTrue(any(item.startswith("ALEMBIC_VERSION_CHECK_FAILED") for item in result.warnings))


if __name__ == "__main__":
    unittest.main()
