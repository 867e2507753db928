"""Changes to the library database.

Each function commits its own work, unless the connection is already inside a
transaction, in which case committing is left to whoever opened it.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from typing import TypeVar

from .errors import DatabaseError
from .models import AccessPermission, Book, BorrowedBook, Email, EmailCategory, User
from .queries import (
    find_book_by_id,
    find_borrowed_book_by_id,
    find_email_by_id,
    find_user_by_id,
)

T = TypeVar("T")


@contextmanager
def _write(db: sqlite3.Connection) -> Iterator[None]:
    outer = db.in_transaction
    try:
        yield
    except sqlite3.Error as exc:
        if not outer:
            db.rollback()
        raise DatabaseError(exc) from exc
    except BaseException:
        if not outer:
            db.rollback()
        raise
    else:
        if not outer:
            db.commit()


def _require(found: T | None, name: str) -> T:
    if found is None:
        raise DatabaseError(f"Cannot find {name}.")
    return found


def create_user(
    db: sqlite3.Connection,
    username: str,
    nickname: str,
    password_hash: str,
    permission: AccessPermission,
) -> User:
    """Add a user registered today."""
    registration_date = date.today()
    with _write(db):
        cursor = db.execute(
            "INSERT INTO users (name, nickname, password_hash, permission, registration_date) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                username,
                nickname,
                password_hash,
                int(AccessPermission(permission)),
                registration_date.isoformat(),
            ),
        )
        return _require(find_user_by_id(db, cursor.lastrowid), "user")


def update_user_by_id(
    db: sqlite3.Connection, user_id: int, nickname: str, password_hash: str
) -> User:
    """Change a user's nickname and password hash."""
    with _write(db):
        _require(find_user_by_id(db, user_id), "user")
        db.execute(
            "UPDATE users SET nickname = ?, password_hash = ? WHERE id = ?",
            (nickname, password_hash, user_id),
        )
        return _require(find_user_by_id(db, user_id), "user")


def _book_values(form_data: Book) -> tuple:
    return (
        form_data.name,
        form_data.author,
        form_data.publisher,
        form_data.publish_year.isoformat(),
        form_data.isbn,
        form_data.copies,
    )


def create_book(db: sqlite3.Connection, form_data: Book) -> Book:
    """Add a book; the id of the form is ignored."""
    with _write(db):
        cursor = db.execute(
            "INSERT INTO books (name, author, publisher, publish_year, isbn, copies) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            _book_values(form_data),
        )
        return _require(find_book_by_id(db, cursor.lastrowid), "book")


def update_book_by_id(db: sqlite3.Connection, book_id: int, form_data: Book) -> Book:
    """Replace every field of a book except its id."""
    with _write(db):
        _require(find_book_by_id(db, book_id), "book")
        db.execute(
            "UPDATE books SET name = ?, author = ?, publisher = ?, publish_year = ?, "
            "isbn = ?, copies = ? WHERE id = ?",
            (*_book_values(form_data), book_id),
        )
        return _require(find_book_by_id(db, book_id), "book")


def update_book_copies_by_id(db: sqlite3.Connection, book_id: int, copies: int) -> Book:
    """Set the number of copies in stock."""
    with _write(db):
        _require(find_book_by_id(db, book_id), "book")
        db.execute("UPDATE books SET copies = ? WHERE id = ?", (copies, book_id))
        return _require(find_book_by_id(db, book_id), "book")


def create_borrowed_book(
    db: sqlite3.Connection,
    user_id: int,
    book_id: int,
    borrow_date: date,
    return_date: date,
) -> BorrowedBook:
    """Record a loan."""
    with _write(db):
        cursor = db.execute(
            "INSERT INTO borrowed_books (user_id, book_id, borrow_date, return_date) "
            "VALUES (?, ?, ?, ?)",
            (user_id, book_id, borrow_date.isoformat(), return_date.isoformat()),
        )
        return _require(find_borrowed_book_by_id(db, cursor.lastrowid), "borrowed_book")


def create_email(
    db: sqlite3.Connection,
    category: EmailCategory,
    sender_id: int,
    recipient_id: int,
    subject: str,
    content: str,
) -> Email:
    """Store a message sent now."""
    date_time = datetime.now()
    with _write(db):
        cursor = db.execute(
            "INSERT INTO emails (category, sender_id, recipient_id, subject, content, date_time) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                int(EmailCategory(category)),
                sender_id,
                recipient_id,
                subject,
                content,
                date_time.isoformat(sep=" "),
            ),
        )
        return _require(find_email_by_id(db, cursor.lastrowid), "email")


def _delete(db: sqlite3.Connection, table: str, name: str, found: object, ident: int) -> int:
    _require(found, name)
    return db.execute(f"DELETE FROM {table} WHERE id = ?", (ident,)).rowcount


def delete_user(db: sqlite3.Connection, user_id: int) -> int:
    """Remove a user; return the number of rows removed."""
    with _write(db):
        return _delete(db, "users", "user", find_user_by_id(db, user_id), user_id)


def delete_book(db: sqlite3.Connection, book_id: int) -> int:
    """Remove a book; return the number of rows removed."""
    with _write(db):
        return _delete(db, "books", "book", find_book_by_id(db, book_id), book_id)


def delete_borrowed_book(db: sqlite3.Connection, borrow_id: int) -> int:
    """Remove a loan record; return the number of rows removed."""
    with _write(db):
        return _delete(
            db,
            "borrowed_books",
            "borrowed_book",
            find_borrowed_book_by_id(db, borrow_id),
            borrow_id,
        )


def delete_email(db: sqlite3.Connection, email_id: int) -> int:
    """Remove a message for both sides; return the number of rows removed."""
    with _write(db):
        return _delete(db, "emails", "email", find_email_by_id(db, email_id), email_id)


def delete_email_by_id_on_sender(db: sqlite3.Connection, email_id: int) -> None:
    """Hide a message from its sender."""
    delete_email_by_id_weak(db, email_id, True)


def delete_email_by_id_on_recipient(db: sqlite3.Connection, email_id: int) -> None:
    """Hide a message from its recipient."""
    delete_email_by_id_weak(db, email_id, False)


def delete_email_by_id_weak(db: sqlite3.Connection, email_id: int, on_sender: bool) -> None:
    """Hide a message from one side; remove it once both sides have deleted it."""
    column = "deleted_by_sender" if on_sender else "deleted_by_recipient"
    with _write(db):
        _require(find_email_by_id(db, email_id), "email")
        db.execute(f"UPDATE emails SET {column} = 1 WHERE id = ?", (email_id,))
        email = _require(find_email_by_id(db, email_id), "email")
        if email.deleted_by_sender and email.deleted_by_recipient:
            delete_email(db, email_id)