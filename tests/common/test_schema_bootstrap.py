from __future__ import annotations

from worktrack.database.bootstrap import SCHEMA_PATH, _iter_sql_statements


def test_splitter_ignores_semicolons_in_quotes_and_comments():
    sql = """
    -- users; not a statement
    CREATE TABLE a (x VARCHAR(10) DEFAULT 'a;b');
    INSERT INTO a VALUES ("c;d"); -- trailing; comment
    SELECT 'it\\'s;fine'
    """

    statements = list(_iter_sql_statements(sql))

    assert statements == [
        "CREATE TABLE a (x VARCHAR(10) DEFAULT 'a;b')",
        'INSERT INTO a VALUES ("c;d")',
        "SELECT 'it\\'s;fine'",
    ]


def test_schema_file_defines_every_table():
    statements = list(_iter_sql_statements(SCHEMA_PATH.read_text(encoding="utf-8")))
    joined = "\n".join(statements)

    for table in (
        "users",
        "workspaces",
        "workspace_members",
        "projects",
        "tasks",
        "time_entries",
        "active_timers",
        "attendance_records",
        "targets",
    ):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in joined
