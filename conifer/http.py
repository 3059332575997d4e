# conifer/http.py
from __future__ import annotations
import logging
import time
from typing import Any, Iterable

import httpx

from .exceptions import ApiError

log = logging.getLogger("conifer")

_RETRYABLE = (httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError)


class RestClient:
    """Thin wrapper over a shared ``httpx.Client``.

    Every call carries ``headers`` and is resolved against ``base_url``.
    A response whose status is not in ``expect`` becomes an ``ApiError``.
    Transport failures are retried ``retries`` times and then re-raised as-is.
    """

    def __init__(self, http: httpx.Client, base_url: str, headers: dict[str, str], retries: int = 0):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.headers = headers
        self.retries = retries

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        expect: Iterable[int] = (200,),
        error_prefix: str = "",
    ) -> httpx.Response:
        url = self.base_url + path
        hdrs = dict(self.headers)
        if headers:
            hdrs.update(headers)
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        tries = max(1, self.retries + 1)
        for attempt in range(tries):
            try:
                log.debug("%s %s", method, url)
                resp = self.http.request(method, url, json=json, params=params or None,
                                         content=content, headers=hdrs)
                break
            except _RETRYABLE as e:
                if attempt < tries - 1:
                    log.warning("%s %s failed (%s), retrying", method, url, e)
                    time.sleep(0.25 * (2 ** attempt))
                    continue
                raise
        if resp.status_code not in tuple(expect):
            raise ApiError.from_response(resp.status_code, resp.text, error_prefix)
        return resp
