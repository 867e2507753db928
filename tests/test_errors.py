from http import HTTPStatus

import pytest

from bookmanager import errors
from bookmanager.errors import AppError, DatabaseError, HttpError


@pytest.mark.parametrize(
    "factory, message, status",
    [
        (errors.unlogin, "unlogin", HTTPStatus.UNAUTHORIZED),
        (errors.unauthorized, "unauthorized", HTTPStatus.UNAUTHORIZED),
        (errors.user_not_found, "User not found", HTTPStatus.NOT_FOUND),
        (errors.book_not_found, "Book not found", HTTPStatus.NOT_FOUND),
        (errors.borrow_record_not_found, "Borrow record not found", HTTPStatus.NOT_FOUND),
        (errors.email_not_found, "Email not found", HTTPStatus.NOT_FOUND),
    ],
)
def test_factories(factory, message, status):
    err = factory()
    assert err.message == message
    assert err.status == status


def test_bad_request_keeps_message():
    err = errors.bad_request("Invalid search type")
    assert err.message == "Invalid search type"
    assert err.status == HTTPStatus.BAD_REQUEST


def test_bad_request_stringifies():
    assert errors.bad_request(42).message == "42"


def test_error_response_is_server_error_with_message():
    assert errors.book_not_found().error_response() == (
        "Book not found",
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )
    assert AppError("boom").error_response() == ("boom", HTTPStatus.INTERNAL_SERVER_ERROR)


def test_str_carries_label_and_message():
    err = DatabaseError(RuntimeError("disk full"))
    assert str(err) == f"{DatabaseError.label}: disk full"
    assert str(AppError("x")).endswith(": x")
    assert str(AppError("x")) != str(DatabaseError("x"))


def test_errors_are_raisable_and_catchable_as_base():
    err = errors.unauthorized()
    assert isinstance(err, HttpError)
    assert err.message == "unauthorized"
    assert err.status == HTTPStatus.UNAUTHORIZED
    with pytest.raises(AppError, match="unauthorized"):
        raise err