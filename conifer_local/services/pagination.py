from __future__ import annotations
import base64
from typing import Sequence, TypeVar

from conifer.wire.control import PaginationResponse

from conifer_local.domain.errors import BadRequestError

T = TypeVar("T")


def _encode(offset: int) -> str:
    return base64.urlsafe_b64encode(f"o:{offset}".encode()).decode().rstrip("=")


def _decode(token: str) -> int:
    try:
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode()
        prefix, _, offset = raw.partition(":")
        if prefix != "o":
            raise ValueError(raw)
        start = int(offset)
    except ValueError as exc:
        raise BadRequestError("Invalid pagination token") from exc
    if start < 0:
        raise BadRequestError("Invalid pagination token")
    return start


def paginate(items: Sequence[T], limit: int | None, token: str | None,
             default_limit: int = 10, max_limit: int = 100) -> tuple[list[T], str | None]:
    """Slice ``items`` into one page and return it with the next page's token."""
    limit = default_limit if limit is None else limit
    if limit < 1 or limit > max_limit:
        raise BadRequestError(f"limit must be between 1 and {max_limit}")
    start = _decode(token) if token else 0
    end = start + limit
    next_token = _encode(end) if end < len(items) else None
    return list(items[start:end]), next_token


def paginate_response(next_token: str | None) -> PaginationResponse | None:
    return PaginationResponse(next=next_token) if next_token else None
