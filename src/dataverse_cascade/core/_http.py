# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Retrying transport used by the Web API client.

Metadata reads, lookup pages and $batch posts all go through
:class:`_HttpClient`, which resends a request after a network error or a
throttling/gateway status and otherwise hands the response back untouched.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Optional

import requests

from ._error_codes import TRANSIENT_STATUS

logger = logging.getLogger(__name__)


class _HttpClient:
    """
    Thin wrapper over :mod:`requests` that retries transient failures.

    :param retries: Attempts per request, including the first. Default is 5.
    :type retries: :class:`int` | None
    :param backoff: Delay in seconds before the first retry; doubled on each further retry. Default is 0.5.
    :type backoff: :class:`float` | None
    :param timeout: Timeout in seconds applied to every request. When None, POST and DELETE get 120 s and everything else 10 s.
    :type timeout: :class:`float` | None
    :param max_backoff: Upper bound for any single retry delay. Default is 60.0.
    :type max_backoff: :class:`float` | None
    :param jitter: Whether to add ±25% random variation to retry delays.
    :type jitter: :class:`bool`
    :param session: Optional requests.Session for connection pooling.
    :type session: :class:`requests.Session` | None
    """

    def __init__(
        self,
        retries: Optional[int] = None,
        backoff: Optional[float] = None,
        timeout: Optional[float] = None,
        max_backoff: Optional[float] = None,
        jitter: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.max_attempts = retries if retries is not None else 5
        self.base_delay = backoff if backoff is not None else 0.5
        self.max_backoff = max_backoff if max_backoff is not None else 60.0
        self.default_timeout: Optional[float] = timeout
        self.jitter = jitter
        self.transient_status_codes = set(TRANSIENT_STATUS)
        self._session = session

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send a request, retrying network errors and transient status codes (429, 502, 503, 504) with
        exponential backoff. The last transient response is returned as-is once attempts
        are exhausted.

        :param method: HTTP method (GET, POST, DELETE, ...).
        :type method: :class:`str`
        :param url: Absolute URL.
        :type url: :class:`str`
        :param kwargs: Additional arguments passed to ``requests.request()`` or ``session.request()``.
        :return: The first non-transient response, or the last transient one.
        :rtype: :class:`requests.Response`
        :raises requests.exceptions.RequestException: When the last attempt fails at the network level.
        """
        if "timeout" not in kwargs:
            if self.default_timeout is not None:
                kwargs["timeout"] = self.default_timeout
            else:
                m = (method or "").lower()
                kwargs["timeout"] = 120 if m in ("post", "delete") else 10

        attempts = max(1, self.max_attempts)
        for attempt in range(attempts):
            try:
                if self._session is not None:
                    response = self._session.request(method, url, **kwargs)
                else:
                    response = requests.request(method, url, **kwargs)
            except requests.exceptions.RequestException as exc:
                if attempt == attempts - 1:
                    raise
                delay = self._calculate_retry_delay(attempt)
                logger.debug("%s %s failed (%s); retrying in %.2fs", method.upper(), url, exc, delay)
                time.sleep(delay)
                continue

            if response.status_code in self.transient_status_codes and attempt < attempts - 1:
                delay = self._calculate_retry_delay(attempt, response)
                logger.debug("%s %s returned %s; retrying in %.2fs", method.upper(), url, response.status_code, delay)
                time.sleep(delay)
                continue
            return response

        raise RuntimeError("Unexpected end of retry loop")

    def _calculate_retry_delay(self, attempt: int, response: Optional[requests.Response] = None) -> float:
        """
        Delay before the next attempt.

        An integer ``Retry-After`` header wins (capped at ``max_backoff``); otherwise
        ``base_delay * 2**attempt`` capped at ``max_backoff``, with optional ±25% jitter.
        """
        if response is not None and "Retry-After" in (response.headers or {}):
            try:
                return min(int(response.headers["Retry-After"]), self.max_backoff)
            except (ValueError, TypeError):
                pass

        delay = min(self.base_delay * (2**attempt), self.max_backoff)
        if self.jitter:
            jitter_range = delay * 0.25
            delay = max(0, delay + random.uniform(-jitter_range, jitter_range))
        return delay

    def close(self) -> None:
        """
        Close the session this client was given, if any. Idempotent.
        """
        if self._session is not None:
            self._session.close()
            self._session = None
