"""Read access to the library database."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from .errors import DatabaseError
from .models import (
    AccessPermission,
    Book,
    BorrowedBook,
    BorrowedBookDetail,
    BorrowedBookForBook,
    BorrowedBookForUser,
    Email,
    EmailDetail,
    User,
)

T = TypeVar("T")


@contextmanager
def _database_errors() -> Iterator[None]:
    """Report failures of the database as DatabaseError."""
    try:
        yield
    except sqlite3.Error as exc:
        raise DatabaseError(exc) from exc


def _fetch(db: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
    with _database_errors():
        cursor = db.execute(sql, tuple(params))
        names = [column[0] for column in cursor.description]
        return [dict(zip(names, row)) for row in cursor.fetchall()]


def _all(
    db: sqlite3.Connection, sql: str, params: Sequence[Any], build: Callable[..., T]
) -> list[T]:
    return [build(**row) for row in _fetch(db, sql, params)]


def _first(
    db: sqlite3.Connection, sql: str, params: Sequence[Any], build: Callable[..., T]
) -> T | None:
    rows = _fetch(db, f"{sql} LIMIT 1", params)
    return build(**rows[0]) if rows else None


def _check_page(page: int, number_per_page: int) -> None:
    if page < 1:
        raise ValueError(f"page numbers start at 1, got {page}")
    if number_per_page < 1:
        raise ValueError(f"a page holds at least one item, got {number_per_page}")


def _paginate(
    db: sqlite3.Connection,
    sql: str,
    params: Sequence[Any],
    build: Callable[..., T],
    page: int,
    number_per_page: int,
) -> tuple[list[T], int]:
    """One page of the query's results and the number of pages there are."""
    _check_page(page, number_per_page)
    params = tuple(params)
    with _database_errors():
        total = db.execute(f"SELECT COUNT(*) FROM ({sql})", params).fetchone()[0]
    items = _all(
        db,
        f"{sql} LIMIT ? OFFSET ?",
        (*params, number_per_page, (page - 1) * number_per_page),
        build,
    )
    num_pages = -(-total // number_per_page)
    return items, num_pages


# Lookups by primary key and plain paging in id order.

def find_book_by_id(db: sqlite3.Connection, book_id: int) -> Book | None:
    return _first(db, "SELECT * FROM books WHERE id = ?", (book_id,), Book)


def find_books_in_page(
    db: sqlite3.Connection, page: int, number_per_page: int
) -> tuple[list[Book], int]:
    return _paginate(db, "SELECT * FROM books ORDER BY id ASC", (), Book, page, number_per_page)


def find_user_by_id(db: sqlite3.Connection, user_id: int) -> User | None:
    return _first(db, "SELECT * FROM users WHERE id = ?", (user_id,), User)


def find_users_in_page(
    db: sqlite3.Connection, page: int, number_per_page: int
) -> tuple[list[User], int]:
    return _paginate(db, "SELECT * FROM users ORDER BY id ASC", (), User, page, number_per_page)


def find_borrowed_book_by_id(db: sqlite3.Connection, borrow_id: int) -> BorrowedBook | None:
    return _first(db, "SELECT * FROM borrowed_books WHERE id = ?", (borrow_id,), BorrowedBook)


def find_borrowed_books_in_page_plain(
    db: sqlite3.Connection, page: int, number_per_page: int
) -> tuple[list[BorrowedBook], int]:
    return _paginate(
        db,
        "SELECT * FROM borrowed_books ORDER BY id ASC",
        (),
        BorrowedBook,
        page,
        number_per_page,
    )


def find_email_by_id(db: sqlite3.Connection, email_id: int) -> Email | None:
    return _first(db, "SELECT * FROM emails WHERE id = ?", (email_id,), Email)


def find_emails_in_page_plain(
    db: sqlite3.Connection, page: int, number_per_page: int
) -> tuple[list[Email], int]:
    return _paginate(db, "SELECT * FROM emails ORDER BY id ASC", (), Email, page, number_per_page)


# Lookups by a single field.

def find_user_by_name(db: sqlite3.Connection, name: str) -> User | None:
    return _first(db, "SELECT * FROM users WHERE name = ?", (name,), User)


def find_books_by_name(db: sqlite3.Connection, name: str) -> list[Book]:
    return _all(db, "SELECT * FROM books WHERE name = ?", (name,), Book)


def find_books_by_author(db: sqlite3.Connection, author: str) -> list[Book]:
    return _all(db, "SELECT * FROM books WHERE author = ?", (author,), Book)


def find_borrowed_books_by_user_id(db: sqlite3.Connection, user_id: int) -> list[BorrowedBook]:
    return _all(db, "SELECT * FROM borrowed_books WHERE user_id = ?", (user_id,), BorrowedBook)


def find_borrowed_books_by_book_id(db: sqlite3.Connection, book_id: int) -> list[BorrowedBook]:
    return _all(db, "SELECT * FROM borrowed_books WHERE book_id = ?", (book_id,), BorrowedBook)


def find_emails_by_sender_id(db: sqlite3.Connection, sender_id: int) -> list[Email]:
    return _all(db, "SELECT * FROM emails WHERE sender_id = ?", (sender_id,), Email)


def find_emails_by_recipient_id(db: sqlite3.Connection, recipient_id: int) -> list[Email]:
    return _all(db, "SELECT * FROM emails WHERE recipient_id = ?", (recipient_id,), Email)


def _ids_with_permission(db: sqlite3.Connection, permission: AccessPermission) -> list[int]:
    rows = _fetch(db, "SELECT id FROM users WHERE permission = ?", (int(permission),))
    return [row["id"] for row in rows]


def find_admin_ids(db: sqlite3.Connection) -> list[int]:
    """Ids of every administrator."""
    return _ids_with_permission(db, AccessPermission.ADMIN)


def find_user_ids(db: sqlite3.Connection) -> list[int]:
    """Ids of every ordinary user."""
    return _ids_with_permission(db, AccessPermission.USER)


# Joined views.

_EMAIL_DETAIL_SELECT = """
SELECT emails.id, emails.category, emails.sender_id, sender.name AS sender_name,
       emails.recipient_id, recipient.name AS recipient_name, emails.subject,
       emails.content, emails.date_time, emails.deleted_by_sender,
       emails.deleted_by_recipient
FROM emails
JOIN users AS recipient ON emails.recipient_id = recipient.id
JOIN users AS sender ON emails.sender_id = sender.id
"""


def find_email_detail_by_id(db: sqlite3.Connection, email_id: int) -> EmailDetail | None:
    """A message with the names of its sender and recipient."""
    return _first(
        db,
        f"{_EMAIL_DETAIL_SELECT} WHERE emails.id = ? ORDER BY emails.date_time ASC",
        (email_id,),
        EmailDetail,
    )


def find_borrowed_books_detail_by_user_id(
    db: sqlite3.Connection, user_id: int
) -> list[BorrowedBookForBook]:
    """Loans of one user, each with the book it concerns."""
    return _all(
        db,
        """
        SELECT borrowed_books.id AS borrow_id, borrowed_books.book_id,
               books.name AS book_name, books.isbn AS isbn, books.author AS book_author,
               borrowed_books.borrow_date, borrowed_books.return_date
        FROM borrowed_books
        JOIN books ON borrowed_books.book_id = books.id
        WHERE borrowed_books.user_id = ?
        """,
        (user_id,),
        BorrowedBookForBook,
    )


def find_borrowed_books_detail_by_book_id(
    db: sqlite3.Connection, book_id: int
) -> list[BorrowedBookForUser]:
    """Loans of one book, each with its borrower, soonest return first."""
    return _all(
        db,
        """
        SELECT borrowed_books.id AS borrow_id, borrowed_books.user_id,
               users.name AS user_name, users.nickname AS user_nickname,
               borrowed_books.borrow_date, borrowed_books.return_date
        FROM borrowed_books
        JOIN users ON borrowed_books.user_id = users.id
        WHERE borrowed_books.book_id = ?
        ORDER BY borrowed_books.return_date ASC
        """,
        (book_id,),
        BorrowedBookForUser,
    )


def find_emails_in_page_by_sender_id(
    db: sqlite3.Connection, sender_id: int, page: int, number_per_page: int
) -> tuple[list[EmailDetail], int]:
    """The sender's outbox, newest first."""
    return find_emails_in_page(db, sender_id, True, page, number_per_page)


def find_emails_in_page_by_recipient_id(
    db: sqlite3.Connection, recipient_id: int, page: int, number_per_page: int
) -> tuple[list[EmailDetail], int]:
    """The recipient's inbox, newest first."""
    return find_emails_in_page(db, recipient_id, False, page, number_per_page)


def find_borrowed_books_detail_in_page(
    db: sqlite3.Connection, page: int, number_per_page: int
) -> tuple[list[BorrowedBookDetail], int]:
    return find_borrowed_books_in_page(db, page, number_per_page)


def find_books_by_keyword_in_page(
    db: sqlite3.Connection, keyword: str, page: int, number_per_page: int
) -> tuple[list[Book], int]:
    """Books whose name, ISBN, author or publisher contain the keyword, by name."""
    pattern = f"%{keyword}%"
    return _paginate(
        db,
        """
        SELECT * FROM books
        WHERE name LIKE ? OR isbn LIKE ? OR author LIKE ? OR publisher LIKE ?
        ORDER BY name ASC
        """,
        (pattern, pattern, pattern, pattern),
        Book,
        page,
        number_per_page,
    )


def find_users_by_keyword_in_page(
    db: sqlite3.Connection, keyword: str, page: int, number_per_page: int
) -> tuple[list[User], int]:
    """Users whose name or nickname contain the keyword, by name."""
    pattern = f"%{keyword}%"
    return _paginate(
        db,
        "SELECT * FROM users WHERE name LIKE ? OR nickname LIKE ? ORDER BY name ASC",
        (pattern, pattern),
        User,
        page,
        number_per_page,
    )


def find_emails_in_page(
    db: sqlite3.Connection,
    user_id: int,
    is_sender: bool,
    page: int,
    number_per_page: int,
) -> tuple[list[EmailDetail], int]:
    """Messages the user sent or received and has not deleted, newest first."""
    if is_sender:
        id_column, deleted_column = "sender_id", "deleted_by_sender"
    else:
        id_column, deleted_column = "recipient_id", "deleted_by_recipient"
    return _paginate(
        db,
        f"""{_EMAIL_DETAIL_SELECT}
        WHERE emails.{id_column} = ? AND emails.{deleted_column} = 0
        ORDER BY emails.date_time DESC
        """,
        (user_id,),
        EmailDetail,
        page,
        number_per_page,
    )


def find_borrowed_books_in_page(
    db: sqlite3.Connection, page: int, number_per_page: int
) -> tuple[list[BorrowedBookDetail], int]:
    """All loans with their book and borrower, latest borrowed first."""
    return _paginate(
        db,
        """
        SELECT borrowed_books.id AS borrow_id, users.name AS user_name,
               users.nickname AS user_nickname, books.name AS book_name,
               books.isbn AS isbn, borrowed_books.borrow_date, borrowed_books.return_date
        FROM borrowed_books
        JOIN books ON borrowed_books.book_id = books.id
        JOIN users ON borrowed_books.user_id = users.id
        ORDER BY borrowed_books.borrow_date DESC
        """,
        (),
        BorrowedBookDetail,
        page,
        number_per_page,
    )