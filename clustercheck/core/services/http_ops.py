"""
HTTP operations — fetch the fixture over HTTPS.

Certificates are verified, so a page only comes back once the ingress
serves a valid certificate for the test host.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


def fetch_page(url: str, *, timeout: float = 10.0) -> dict:
    """GET ``url`` without following redirects.

    Returns:
        {"ok": True, "status": int, "body": str}
        or {"ok": False, "error": str}
    """
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=False)
    except httpx.HTTPError as e:
        return {"ok": False, "url": url, "error": f"{type(e).__name__}: {e}"}

    return {"ok": True, "url": url, "status": response.status_code, "body": response.text}


def page_contains(url: str, needle: str, *, timeout: float = 10.0) -> bool:
    """Whether the page at ``url`` currently contains ``needle``."""
    result = fetch_page(url, timeout=timeout)
    if not result["ok"]:
        logger.debug("GET %s failed: %s", url, result["error"])
        return False
    found = needle in result["body"]
    logger.debug("GET %s → %s, %s", url, result["status"], "match" if found else "no match")
    return found
