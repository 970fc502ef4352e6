from pathlib import Path

from src.exeat_system.exeat_system.database.bootstrap import iter_sql_statements

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splits_on_semicolons_outside_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\nSELECT \"x;\";  \n\nSELECT 1"
    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('a;b')", 'SELECT "x;"', "SELECT 1"]


def test_escaped_quote_inside_string():
    assert list(iter_sql_statements(r"SELECT 'it\'s; fine';")) == [r"SELECT 'it\'s; fine'"]


def test_schema_declares_every_table():
    statements = list(iter_sql_statements(SCHEMA.read_text(encoding="utf-8")))
    joined = "\n".join(statements)
    for table in ("staff_roles", "exeat_requests", "exeat_approvals", "student_exeat_debts", "exeat_notifications"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in joined
    assert "UNIQUE KEY uq_debt_request (exeat_request_id)" in joined
