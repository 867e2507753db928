"""Database schema of the library and the migrations that build it."""

from __future__ import annotations

import argparse
import os
import sqlite3
import time
from collections.abc import Sequence
from dataclasses import dataclass

from dotenv import load_dotenv

MAX_EMAIL_TITLE_LEN = 255
MAX_EMAIL_CONTENT_LEN = 1000

MIGRATION_TABLE = "seaql_migrations"


@dataclass(frozen=True)
class Migration:
    """One versioned step of the schema: a table it creates and drops again."""

    name: str
    table: str
    columns: tuple[str, ...]
    constraints: tuple[str, ...] = ()

    @property
    def create_sql(self) -> str:
        body = ",\n    ".join(self.columns + self.constraints)
        return f"CREATE TABLE IF NOT EXISTS {self.table} (\n    {body}\n)"

    @property
    def drop_sql(self) -> str:
        return f"DROP TABLE {self.table}"

    def up(self, conn: sqlite3.Connection) -> None:
        conn.execute(self.create_sql)

    def down(self, conn: sqlite3.Connection) -> None:
        conn.execute(self.drop_sql)


_ID = "id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT"

CREATE_BOOKS = Migration(
    name="m001_create_books_table",
    table="books",
    columns=(
        _ID,
        "name VARCHAR NOT NULL",
        "author VARCHAR NOT NULL",
        "publisher VARCHAR NOT NULL",
        "publish_year DATE NOT NULL",
        "isbn VARCHAR UNIQUE NOT NULL",
        "copies INTEGER NOT NULL",
    ),
)

CREATE_USERS = Migration(
    name="m002_create_users_table",
    table="users",
    columns=(
        _ID,
        "name VARCHAR NOT NULL UNIQUE",
        "nickname VARCHAR NOT NULL",
        "password_hash VARCHAR NOT NULL",
        "permission INTEGER NOT NULL",
        "registration_date DATE NOT NULL",
    ),
)

CREATE_BORROWED_BOOKS = Migration(
    name="m003_create_borrowed_books_table",
    table="borrowed_books",
    columns=(
        _ID,
        "user_id INTEGER NOT NULL",
        "book_id INTEGER NOT NULL",
        "borrow_date DATE NOT NULL",
        "return_date DATE NOT NULL",
    ),
    constraints=(
        "CONSTRAINT fk_user_id FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE RESTRICT",
        "CONSTRAINT fk_book_id FOREIGN KEY (book_id) REFERENCES books (id) ON DELETE RESTRICT",
    ),
)

CREATE_EMAILS = Migration(
    name="m004_create_emails_table",
    table="emails",
    columns=(
        _ID,
        "category INTEGER DEFAULT 0 NOT NULL",
        "sender_id INTEGER NOT NULL",
        "recipient_id INTEGER NOT NULL",
        f"subject VARCHAR({MAX_EMAIL_TITLE_LEN}) NOT NULL",
        f"content VARCHAR({MAX_EMAIL_CONTENT_LEN}) NOT NULL",
        "date_time DATE NOT NULL",
        "deleted_by_recipient BOOLEAN NOT NULL DEFAULT FALSE",
        "deleted_by_sender BOOLEAN NOT NULL DEFAULT FALSE",
    ),
    constraints=(
        "CONSTRAINT fk_addr_user_id FOREIGN KEY (sender_id) REFERENCES users (id) ON DELETE CASCADE",
        "CONSTRAINT fk_recv_user_id FOREIGN KEY (recipient_id) REFERENCES users (id) ON DELETE CASCADE",
    ),
)

# Defined alongside the others but not part of the applied sequence.
CREATE_EMAIL_MESSAGES = Migration(
    name="m005_create_email_messages_table",
    table="email_messages",
    columns=(
        _ID,
        "category INTEGER DEFAULT 0 NOT NULL",
        "sender_id INTEGER NOT NULL",
        f"subject VARCHAR({MAX_EMAIL_TITLE_LEN}) NOT NULL",
        f"content VARCHAR({MAX_EMAIL_CONTENT_LEN}) NOT NULL",
        "date DATE NOT NULL",
    ),
    constraints=(
        "CONSTRAINT fk_addr_user_id FOREIGN KEY (sender_id) REFERENCES users (id) ON DELETE CASCADE",
    ),
)

MIGRATIONS: tuple[Migration, ...] = (
    CREATE_BOOKS,
    CREATE_USERS,
    CREATE_BORROWED_BOOKS,
    CREATE_EMAILS,
)


def connect(database_url: str) -> sqlite3.Connection:
    """Open an SQLite database given as ``sqlite://path``, ``sqlite::memory:`` or a plain path."""
    url = database_url.strip()
    if url.startswith("sqlite:"):
        url = url[len("sqlite:"):]
        if url.startswith("//"):
            url = url[2:]
    elif "://" in url:
        raise ValueError(f"unsupported database url: {database_url!r}")

    path, _, query = url.partition("?")
    if not path:
        raise ValueError(f"database url names no database: {database_url!r}")
    if query:
        conn = sqlite3.connect(f"file:{path}?{query}", uri=True)
    else:
        conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _ensure_tracking(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {MIGRATION_TABLE} "
        "(version VARCHAR NOT NULL PRIMARY KEY, applied_at BIGINT NOT NULL)"
    )


def applied_migrations(conn: sqlite3.Connection) -> list[str]:
    """Names of the migrations recorded as applied, in order."""
    _ensure_tracking(conn)
    rows = conn.execute(f"SELECT version FROM {MIGRATION_TABLE} ORDER BY version")
    return [row[0] for row in rows]


def _check_known(applied: Sequence[str]) -> None:
    known = {m.name for m in MIGRATIONS}
    for name in applied:
        if name not in known:
            raise RuntimeError(f"Migration file of version '{name}' is missing")


def _up(conn: sqlite3.Connection, steps: int | None = None) -> list[str]:
    applied = applied_migrations(conn)
    _check_known(applied)
    pending = [m for m in MIGRATIONS if m.name not in applied]
    if steps is not None:
        pending = pending[:steps]
    done = []
    for migration in pending:
        with conn:
            migration.up(conn)
            conn.execute(
                f"INSERT INTO {MIGRATION_TABLE} (version, applied_at) VALUES (?, ?)",
                (migration.name, int(time.time())),
            )
        done.append(migration.name)
    return done


def _down(conn: sqlite3.Connection, steps: int | None = None) -> list[str]:
    applied = applied_migrations(conn)
    _check_known(applied)
    to_revert = [m for m in reversed(MIGRATIONS) if m.name in applied]
    if steps is not None:
        to_revert = to_revert[:steps]
    done = []
    for migration in to_revert:
        with conn:
            migration.down(conn)
            conn.execute(
                f"DELETE FROM {MIGRATION_TABLE} WHERE version = ?", (migration.name,)
            )
        done.append(migration.name)
    return done


def migrate_up(conn: sqlite3.Connection) -> list[str]:
    """Apply every pending migration; return the names applied."""
    return _up(conn)


def migrate_down(conn: sqlite3.Connection) -> list[str]:
    """Roll back every applied migration, newest first; return the names rolled back."""
    return _down(conn)


def _drop_all_tables(conn: sqlite3.Connection) -> None:
    names = [
        row[0]
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
        )
    ]
    conn.execute("PRAGMA foreign_keys = OFF")
    try:
        with conn:
            for name in names:
                conn.execute(f'DROP TABLE "{name}"')
    finally:
        conn.execute("PRAGMA foreign_keys = ON")


def _status(conn: sqlite3.Connection) -> None:
    applied = set(applied_migrations(conn))
    for migration in MIGRATIONS:
        state = "Applied" if migration.name in applied else "Pending"
        print(f"Migration '{migration.name}'... {state}")


def main(argv: Sequence[str] | None = None) -> int:
    """Command line for managing the schema."""
    load_dotenv()
    parser = argparse.ArgumentParser(prog="bookmanager-migrate", description=__doc__)
    parser.add_argument(
        "-u",
        "--database-url",
        default=os.environ.get("DATABASE_URL"),
        help="database to migrate (defaults to $DATABASE_URL)",
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("status", help="show the state of every migration")
    up = commands.add_parser("up", help="apply pending migrations")
    up.add_argument("-n", "--num", type=int, default=None)
    down = commands.add_parser("down", help="roll back applied migrations")
    down.add_argument("-n", "--num", type=int, default=1)
    commands.add_parser("fresh", help="drop all tables, then apply all migrations")
    commands.add_parser("refresh", help="roll back all migrations, then apply them again")
    commands.add_parser("reset", help="roll back all applied migrations")

    args = parser.parse_args(argv)
    if not args.database_url:
        parser.error("DATABASE_URL is not set")

    conn = connect(args.database_url)
    try:
        command = args.command or "up"
        if command == "status":
            _status(conn)
            return 0
        if command == "up":
            names = _up(conn, getattr(args, "num", None))
        elif command == "down":
            names = _down(conn, args.num)
        elif command == "fresh":
            _drop_all_tables(conn)
            names = _up(conn)
        elif command == "refresh":
            _down(conn)
            names = _up(conn)
        else:
            names = _down(conn)
        if not names:
            print("No migrations to run")
        for name in names:
            print(f"{command}: {name}")
        return 0
    finally:
        conn.close()