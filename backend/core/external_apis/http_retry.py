"""
HTTP GET/POST with retries and exponential backoff for external registries.
"""
import logging
import time
from typing import Any, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 1.0


def _request_with_retries(
    method: str,
    url: str,
    timeout: int,
    max_retries: int,
    initial_backoff: float,
    **kwargs: Any,
) -> Tuple[Optional[requests.Response], Optional[str]]:
    last_error: Optional[str] = None
    for attempt in range(max_retries):
        try:
            resp = requests.request(method, url, timeout=timeout, **kwargs)
            return (resp, None)
        except requests.Timeout as e:
            last_error = f"Read timed out: {e}"
        except requests.RequestException as e:
            last_error = f"{type(e).__name__}: {e}"
        logger.warning(
            "EXTERNAL_API retry method=%s attempt=%s/%s url=%s error=%s",
            method, attempt + 1, max_retries, url[:60], last_error,
        )
        if attempt < max_retries - 1:
            delay = initial_backoff * (2 ** attempt)
            logger.info("EXTERNAL_API backoff %.1fs before retry", delay)
            time.sleep(delay)
    return (None, last_error)


def get_with_retries(
    url: str,
    params: Optional[dict] = None,
    timeout: int = 10,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    headers: Optional[dict] = None,
) -> Tuple[Optional[requests.Response], Optional[str]]:
    """
    GET with retries and exponential backoff on timeout/connection errors.
    Returns (response, None) on success, (None, error_message) on failure.
    """
    return _request_with_retries(
        "GET", url, timeout, max_retries, initial_backoff,
        params=params or {}, headers=headers or {},
    )


def post_with_retries(
    url: str,
    json_body: dict,
    timeout: int = 10,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    headers: Optional[dict] = None,
) -> Tuple[Optional[requests.Response], Optional[str]]:
    """POST a JSON body; same retry and return contract as get_with_retries."""
    return _request_with_retries(
        "POST", url, timeout, max_retries, initial_backoff,
        json=json_body, headers=headers or {},
    )
