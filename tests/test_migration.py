import os
import sqlite3
import tempfile

import pytest

from migration.migration_v1_to_v2 import migrate


def create_v1_db(path: str):
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "CREATE TABLE contact_messages (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT NOT NULL, "
            "phone TEXT, message TEXT NOT NULL, created_at TIMESTAMP, is_read BOOLEAN DEFAULT 0)"
        )
        # Seed data
        conn.execute(
            "INSERT INTO contact_messages (name, email, message, is_read) VALUES "
            "('Alice', 'alice@example.com', 'Hi', 1), ('Bob', 'bob@example.com', 'Hello', 0)"
        )
        conn.commit()
    finally:
        conn.close()


def test_migration_adds_subject_and_status():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "test.db")
        create_v1_db(db_path)

        # Run migration twice; second run must be a no-op
        migrate(db_path)
        migrate(db_path)

        conn = sqlite3.connect(db_path)
        try:
            cur = conn.execute("PRAGMA table_info(contact_messages)")
            cols = [r[1] for r in cur.fetchall()]
            assert "subject" in cols
            assert "status" in cols

            rows = conn.execute("SELECT name, subject, status FROM contact_messages ORDER BY id").fetchall()
            assert rows == [("Alice", "(no subject)", "read"), ("Bob", "(no subject)", "unread")]
        finally:
            conn.close()


def test_migration_requires_file_db():
    with pytest.raises(ValueError):
        migrate(":memory:")
    with pytest.raises(FileNotFoundError):
        migrate("/nonexistent/catalog.db")
