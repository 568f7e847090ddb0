"""Shared HTTP session for provider adapters, with a simple global rate limit.

Provider calls are blocking `requests` calls; the async adapters push them
onto a worker thread with `asyncio.to_thread` so the session's event loop
never blocks.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Optional

import requests

from settings import settings

logger = logging.getLogger(__name__)
_session = requests.Session()
_last_request_ts: float = 0.0
_lock = threading.Lock()


def default_headers() -> dict[str, str]:
    return {"User-Agent": settings.HTTP_USER_AGENT}


def _wait_for_slot() -> None:
    global _last_request_ts
    with _lock:
        now = time.time()
        delta = now - _last_request_ts
        if delta < settings.HTTP_MIN_INTERVAL_SEC:
            time.sleep(settings.HTTP_MIN_INTERVAL_SEC - delta)
        _last_request_ts = time.time()


def throttled_get(
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """Perform a GET request with a simple global rate limit."""
    _wait_for_slot()
    return _session.get(
        url,
        params=params,
        headers=headers or default_headers(),
        timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SEC,
    )


def throttled_post(
    url: str,
    *,
    data: Any = None,
    headers: Optional[dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """Perform a POST request with the same global rate limit."""
    _wait_for_slot()
    return _session.post(
        url,
        data=data,
        headers=headers or default_headers(),
        timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SEC,
    )


def _json_or_raise(resp: requests.Response) -> Any:
    if not resp.ok:
        logger.warning("[http] %s returned %s", resp.url, resp.status_code)
    resp.raise_for_status()
    return resp.json()


async def get_json(url: str, **kwargs: Any) -> Any:
    resp = await asyncio.to_thread(throttled_get, url, **kwargs)
    return _json_or_raise(resp)


async def post_json(url: str, **kwargs: Any) -> Any:
    resp = await asyncio.to_thread(throttled_post, url, **kwargs)
    return _json_or_raise(resp)
