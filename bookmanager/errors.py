"""Errors raised by request handlers and how they turn into responses."""

from __future__ import annotations

from http import HTTPStatus


class AppError(Exception):
    """Base error of the application; answered with a server error response."""

    label = "Other"

    def __init__(self, message: object) -> None:
        self.message = str(message)
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"

    def error_response(self) -> tuple[str, HTTPStatus]:
        """Body and status sent back for this error."""
        return self.message, HTTPStatus.INTERNAL_SERVER_ERROR


class HttpError(AppError):
    """An error that carries the HTTP status it stands for."""

    label = "HttpError"

    def __init__(self, message: object, status: HTTPStatus | int) -> None:
        super().__init__(message)
        self.status = HTTPStatus(status)


class DatabaseError(AppError):
    """A failure reported by the storage layer."""

    label = "DatabaseError"


def unlogin() -> HttpError:
    return HttpError("unlogin", HTTPStatus.UNAUTHORIZED)


def unauthorized() -> HttpError:
    return HttpError("unauthorized", HTTPStatus.UNAUTHORIZED)


def user_not_found() -> HttpError:
    return HttpError("User not found", HTTPStatus.NOT_FOUND)


def book_not_found() -> HttpError:
    return HttpError("Book not found", HTTPStatus.NOT_FOUND)


def borrow_record_not_found() -> HttpError:
    return HttpError("Borrow record not found", HTTPStatus.NOT_FOUND)


def email_not_found() -> HttpError:
    return HttpError("Email not found", HTTPStatus.NOT_FOUND)


def bad_request(msg: object) -> HttpError:
    return HttpError(msg, HTTPStatus.BAD_REQUEST)