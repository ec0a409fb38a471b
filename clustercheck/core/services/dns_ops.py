"""
DNS operations — resolution and DNSSEC lookups via system resolver tools.

``nslookup`` is used rather than ``dig`` because it is the one that
ships in the broker's container image.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess

logger = logging.getLogger(__name__)

_CNAME_MARKER = "canonical name ="
_FULLY_VALIDATED = re.compile(r"^\s*-\s*fully_validated:", re.MULTILINE)


def resolver_available(tool: str) -> bool:
    """Whether the resolver tool ``tool`` is on PATH."""
    return shutil.which(tool) is not None


def nslookup(host: str, record_type: str = "CNAME", *, timeout: int = 15) -> dict:
    """Run ``nslookup -type=<record_type> <host>``.

    Returns:
        {"ok": bool, "host": str, "output": str} or {"ok": False, "error": str}
    """
    if not resolver_available("nslookup"):
        return {"ok": False, "host": host, "error": "nslookup not available"}

    try:
        result = subprocess.run(
            ["nslookup", f"-type={record_type}", host],
            capture_output=True, text=True, timeout=timeout,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        return {"ok": False, "host": host, "error": str(e)}

    # nslookup exits 1 on NXDOMAIN; that is an answer, not an error
    return {"ok": True, "host": host, "output": result.stdout, "returncode": result.returncode}


def cname_target(output: str) -> str | None:
    """Extract the CNAME target from nslookup output, if any."""
    for line in output.splitlines():
        if _CNAME_MARKER in line:
            return line.split(_CNAME_MARKER, 1)[1].strip().rstrip(".")
    return None


def has_cname(host: str) -> bool:
    """Whether ``host`` currently resolves to a CNAME record."""
    result = nslookup(host, "CNAME")
    if not result.get("ok"):
        logger.debug("CNAME lookup for %s failed: %s", host, result.get("error"))
        return False
    target = cname_target(result["output"])
    if target:
        logger.info("%s is a CNAME for %s", host, target)
    return target is not None


def dnssec_validated(domain: str, *, timeout: int = 30) -> bool:
    """Whether ``delv`` reports a fully validated DNSSEC chain for ``domain``.

    Depends on the intermediate resolver passing DNSSEC records through,
    which is why the check using it is opt-in.
    """
    if not resolver_available("delv"):
        logger.debug("delv not available")
        return False
    try:
        result = subprocess.run(
            ["delv", domain, "+yaml"],
            capture_output=True, text=True, timeout=timeout,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug("delv %s failed: %s", domain, e)
        return False
    return bool(_FULLY_VALIDATED.search(result.stdout))
