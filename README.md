# bookmanager

The data layer and request helpers of a library management application:
a catalogue of books, loans of books to users, user accounts with
permission levels, and internal mail between users. Data is kept in an
SQLite database.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Managing the database schema

`bookmanager-migrate` creates and removes the tables. It reads
`DATABASE_URL` from the environment, or from a `.env` file in the working
directory, unless `-u/--database-url` is given.

```
bookmanager-migrate status        # show each migration as Applied or Pending
bookmanager-migrate up [-n N]     # apply pending migrations (the default command)
bookmanager-migrate down [-n N]   # roll back the last N migrations (default 1)
bookmanager-migrate fresh         # drop all tables, then apply every migration
bookmanager-migrate refresh       # roll back every migration, then apply them again
bookmanager-migrate reset         # roll back every applied migration
```

A database is named as `sqlite://path`, `sqlite::memory:` or a plain file
path. Applied migrations are recorded in the table `seaql_migrations`.

## Using it from Python

```python
from datetime import date

from bookmanager import mutations, queries
from bookmanager.models import AccessPermission, Book
from bookmanager.schema import connect, migrate_up

conn = connect("sqlite::memory:")
migrate_up(conn)

user = mutations.create_user(conn, "alice", "Alice", "placeholder", AccessPermission.USER)
book = mutations.create_book(
    conn,
    Book(id=0, name="Dune", author="Frank Herbert", publisher="Ace",
         publish_year=date(1965, 8, 1), isbn="isbn-0001", copies=3),
)
mutations.create_borrowed_book(conn, user.id, book.id, date(2024, 1, 1), date(2024, 1, 15))

books, num_pages = queries.find_books_by_keyword_in_page(conn, "Dune", 1, 8)
loans = queries.find_borrowed_books_detail_by_user_id(conn, user.id)
```

### Modules

- `bookmanager.models` — dataclasses for the stored records (`Book`,
  `BorrowedBook`, `Email`, `User`, `Post`) and for joined views
  (`BorrowedBookDetail`, `BorrowedBookForBook`, `BorrowedBookForUser`,
  `EmailDetail`), plus the enums `AccessPermission` (`ADMIN`, `USER`,
  `GUEST`; a lower value grants more rights) and `EmailCategory` (`REGULAR`,
  `TO_ADMIN_BROADCAST`, `TO_USER_BROADCAST`). Dates given as ISO strings are
  converted on construction. `User.public_dict()` leaves out the password
  hash; `EmailDetail.to_email()` drops the joined names.
- `bookmanager.schema` — `connect`, `migrate_up`, `migrate_down`,
  `applied_migrations`, the `Migration` steps, and `main`, the
  `bookmanager-migrate` command.
- `bookmanager.queries` — lookups by id and by field, keyword search for
  books (name, ISBN, author or publisher) and users (name or nickname),
  inbox and outbox listings that leave out messages the user has deleted,
  and loan listings joined with books and users. Paged queries take a page
  number starting at 1 and return `(items, number_of_pages)`; a page or
  page size below 1 raises `ValueError`.
- `bookmanager.mutations` — creating, updating and deleting users, books,
  loans and messages. Each call commits its own work unless the connection
  is already in a transaction. A missing record raises `DatabaseError`
  (`"Cannot find book."` and so on); delete functions return the number of
  rows removed. `delete_email_by_id_on_sender` and
  `delete_email_by_id_on_recipient` hide a message from one side and remove
  it once both sides have deleted it.
- `bookmanager.errors` — `AppError`, `HttpError` (with an HTTP status) and
  `DatabaseError`, and helpers such as `unauthorized()`, `book_not_found()`
  and `bad_request(msg)`. `AppError.error_response()` gives the body and a
  500 status.
- `bookmanager.permission` — `perm_verify(session, permission)` checks the
  `user_permission` stored in a session mapping; `require_permission` is a
  Flask view decorator that answers 401 `unauthorized` when the check fails.
- `bookmanager.filters` — `is_overdue(value)`, a template filter that is
  true while today is still before the given date.

## What it does not do

The package has no web server, no routes, no page templates and no
request handlers for logging in, registering, browsing, borrowing,
returning or mail; it does not hash passwords. There is no command that
starts a server. An application built on it supplies those itself, using
the modules above for storage and access checks.