"""Tests for request-scoped route dependencies."""

import pytest

from komuness.routes.deps import PageParams, page_params


@pytest.mark.parametrize(
    ("offset", "limit", "expected"),
    [
        (None, None, PageParams(0, 10)),
        ("20", "5", PageParams(20, 5)),
        (" 3 ", " 7 ", PageParams(3, 7)),
        ("0", "0", PageParams(0, 10)),
        ("-1", "-5", PageParams(0, 10)),
        ("abc", "abc", PageParams(0, 10)),
        ("1.5", "2.5", PageParams(0, 10)),
        ("0", "1000", PageParams(0, 100)),
    ],
)
def test_page_params(offset, limit, expected):
    assert page_params(offset, limit) == expected
