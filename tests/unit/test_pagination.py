import base64

import pytest

from conifer_local.domain.errors import BadRequestError
from conifer_local.services.pagination import paginate, paginate_response


def test_pages_until_exhausted():
    items = list(range(25))
    page, tok = paginate(items, 10, None)
    assert page == list(range(10))
    page, tok = paginate(items, 10, tok)
    assert page == list(range(10, 20))
    page, tok = paginate(items, 10, tok)
    assert page == list(range(20, 25))
    assert tok is None


def test_default_limit_and_bounds():
    page, tok = paginate(list(range(3)), None, None, default_limit=2)
    assert page == [0, 1] and tok is not None
    with pytest.raises(BadRequestError):
        paginate([1], 0, None)
    with pytest.raises(BadRequestError):
        paginate([1], 101, None)


def test_garbage_token_is_rejected():
    with pytest.raises(BadRequestError, match="Invalid pagination token"):
        paginate([1, 2, 3], 1, "not-a-token!")


def test_negative_offset_token_is_rejected():
    token = base64.urlsafe_b64encode(b"o:-5").decode().rstrip("=")
    with pytest.raises(BadRequestError, match="Invalid pagination token"):
        paginate(list(range(10)), 2, token)


def test_pagination_block_only_when_more_pages():
    assert paginate_response(None) is None
    assert paginate_response("abc").next == "abc"
