"""
Migration V1 -> V2
- Adds 'subject' column to contact_messages if missing, backfilled with '(no subject)'
- Replaces the legacy boolean 'is_read' flag with a 'status' column ('unread' / 'read')

Usage:
  python -m migration.migration_v1_to_v2 --db path/to/catalog.db
"""
import argparse
import os
import sqlite3
from contextlib import closing

DEFAULT_SUBJECT = "(no subject)"


def has_column(conn: sqlite3.Connection, table: str, column: str) -> bool:
    cur = conn.execute(f"PRAGMA table_info({table})")
    return any(row[1] == column for row in cur.fetchall())


def migrate(db_path: str):
    if db_path == ":memory:":
        raise ValueError("Use a file-backed DB for migration script")

    if not os.path.exists(db_path):
        raise FileNotFoundError(db_path)

    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("PRAGMA foreign_keys=ON")

        # Ensure contact_messages table exists
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        if "contact_messages" not in tables:
            raise RuntimeError("contact_messages table missing; cannot migrate")

        if not has_column(conn, "contact_messages", "subject"):
            conn.execute("ALTER TABLE contact_messages ADD COLUMN subject TEXT")
        conn.execute("UPDATE contact_messages SET subject = ? WHERE subject IS NULL OR subject = ''", (DEFAULT_SUBJECT,))

        if not has_column(conn, "contact_messages", "status"):
            conn.execute("ALTER TABLE contact_messages ADD COLUMN status TEXT DEFAULT 'unread' NOT NULL")
            if has_column(conn, "contact_messages", "is_read"):
                # Backfill from the old boolean flag
                conn.execute("UPDATE contact_messages SET status = CASE WHEN is_read THEN 'read' ELSE 'unread' END")
        conn.commit()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", required=True, help="Path to SQLite database file")
    args = parser.parse_args()
    migrate(args.db)

if __name__ == "__main__":
    main()
