"""
HTTP helper with retries + polite headers reused by adapters.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from feedstream.errors import UpstreamRateLimited, UpstreamUnreachable

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = frozenset({429})


class HttpClient:
    def __init__(self, timeout: float = 15, max_retries: int = 2, user_agent: str | None = None):
        self.timeout = timeout
        self.session = requests.Session()
        # 429 stays out of the forcelist: callers report it instead of backing off.
        retry = Retry(
            total=max_retries,
            backoff_factor=0.3,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update({"User-Agent": user_agent or "feedstream/1.0"})

    def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        accept: Optional[str] = None,
    ) -> requests.Response:
        """
        GET ``url`` and return the response for any 2xx status.

        Raises UpstreamRateLimited for 429 and UpstreamUnreachable for every
        other non-2xx status or transport error.
        """
        headers = {"Accept": accept} if accept else None
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamUnreachable(url, reason=str(exc)) from exc
        if resp.status_code in RATE_LIMIT_STATUSES:
            raise UpstreamRateLimited(url, status_code=resp.status_code)
        if not 200 <= resp.status_code < 300:
            logger.debug("HTTP GET %s returned %s: %s", url, resp.status_code, resp.text[:200])
            raise UpstreamUnreachable(url, status_code=resp.status_code)
        return resp

    def close(self) -> None:
        self.session.close()
