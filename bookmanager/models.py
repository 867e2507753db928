"""Records kept by the library database and the joined views built from them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import date, datetime, time
from enum import IntEnum
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class _NamedIntEnum(IntEnum):
    """Integer enum that also accepts its member names, in CamelCase or upper case."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if not isinstance(value, str):
            return None
        text = value.strip()
        if text.lstrip("-").isdigit():
            return cls._value2member_map_.get(int(text))
        for key in (text.upper(), _CAMEL_BOUNDARY.sub("_", text).upper()):
            if key in cls.__members__:
                return cls.__members__[key]
        return None


class AccessPermission(_NamedIntEnum):
    """Access level of a user; a lower value grants more rights."""

    ADMIN = 0
    USER = 1
    GUEST = 2

    def is_admin(self) -> bool:
        return self is AccessPermission.ADMIN


class EmailCategory(_NamedIntEnum):
    """Kind of internal message."""

    REGULAR = 0
    TO_ADMIN_BROADCAST = 1
    TO_USER_BROADCAST = 2


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f"cannot read a date from {value!r}")


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise TypeError(f"cannot read a date and time from {value!r}")


@dataclass
class Book:
    id: int
    name: str
    author: str
    publisher: str
    publish_year: date
    isbn: str
    copies: int

    def __post_init__(self) -> None:
        self.id = int(self.id)
        self.publish_year = _as_date(self.publish_year)
        self.copies = int(self.copies)


@dataclass
class BorrowedBook:
    id: int
    user_id: int
    book_id: int
    borrow_date: date
    return_date: date

    def __post_init__(self) -> None:
        self.borrow_date = _as_date(self.borrow_date)
        self.return_date = _as_date(self.return_date)


@dataclass
class Email:
    id: int
    category: EmailCategory
    sender_id: int
    recipient_id: int
    subject: str
    content: str
    date_time: datetime
    deleted_by_sender: bool = False
    deleted_by_recipient: bool = False

    def __post_init__(self) -> None:
        self.category = EmailCategory(self.category)
        self.date_time = _as_datetime(self.date_time)
        self.deleted_by_sender = bool(self.deleted_by_sender)
        self.deleted_by_recipient = bool(self.deleted_by_recipient)


@dataclass
class User:
    id: int
    name: str
    nickname: str
    password_hash: str = field(repr=False)
    permission: AccessPermission
    registration_date: date

    def __post_init__(self) -> None:
        if isinstance(self.password_hash, (bytes, bytearray)):
            self.password_hash = bytes(self.password_hash).decode()
        self.permission = AccessPermission(self.permission)
        self.registration_date = _as_date(self.registration_date)

    def public_dict(self) -> dict[str, Any]:
        """Fields safe to show, without the password hash."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "password_hash"
        }


@dataclass
class Post:
    id: int
    title: str
    text: str


@dataclass
class BorrowedBookDetail:
    """A loan joined with its book and borrower."""

    borrow_id: int
    user_name: str
    user_nickname: str
    book_name: str
    isbn: str
    borrow_date: date
    return_date: date

    def __post_init__(self) -> None:
        self.borrow_date = _as_date(self.borrow_date)
        self.return_date = _as_date(self.return_date)


@dataclass
class BorrowedBookForBook:
    """A loan of one user, described by the book borrowed."""

    borrow_id: int
    book_id: int
    book_name: str
    isbn: str
    book_author: str
    borrow_date: date
    return_date: date

    def __post_init__(self) -> None:
        self.borrow_date = _as_date(self.borrow_date)
        self.return_date = _as_date(self.return_date)


@dataclass
class BorrowedBookForUser:
    """A loan of one book, described by the borrower."""

    borrow_id: int
    user_id: int
    user_name: str
    user_nickname: str
    borrow_date: date
    return_date: date

    def __post_init__(self) -> None:
        self.borrow_date = _as_date(self.borrow_date)
        self.return_date = _as_date(self.return_date)


@dataclass
class EmailDetail:
    """A message together with the names of its sender and recipient."""

    id: int
    category: EmailCategory
    sender_id: int
    sender_name: str
    recipient_id: int
    recipient_name: str
    subject: str
    content: str
    date_time: datetime
    deleted_by_sender: bool = False
    deleted_by_recipient: bool = False

    def __post_init__(self) -> None:
        self.category = EmailCategory(self.category)
        self.date_time = _as_datetime(self.date_time)
        self.deleted_by_sender = bool(self.deleted_by_sender)
        self.deleted_by_recipient = bool(self.deleted_by_recipient)

    def to_email(self) -> Email:
        """The stored message, without the joined names."""
        return Email(
            id=self.id,
            category=self.category,
            sender_id=self.sender_id,
            recipient_id=self.recipient_id,
            subject=self.subject,
            content=self.content,
            date_time=self.date_time,
            deleted_by_sender=self.deleted_by_sender,
            deleted_by_recipient=self.deleted_by_recipient,
        )