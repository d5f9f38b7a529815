"""Tests for stockpile.core.errors - status codes and hierarchy."""

from __future__ import annotations

import pytest

from stockpile.core.errors import (
    MethodNotAllowedError,
    NotFoundError,
    StockpileError,
    StorageError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error_cls", "status"),
    [
        (ValidationError, 400),
        (NotFoundError, 404),
        (StorageError, 500),
    ],
)
def test_status_codes(error_cls, status):
    error = error_cls("boom")
    assert isinstance(error, StockpileError)
    assert error.status_code == status
    assert error.message == "boom"
    assert str(error) == "boom"


def test_method_not_allowed_default_message():
    error = MethodNotAllowedError()
    assert error.status_code == 405
    assert error.message == "Method Not Allowed"
