"""
K8s shared helpers — the kubectl subprocess seam.

Everything that talks to a live cluster goes through _run_kubectl,
so tests only need to patch this one function. Must NOT import from
sibling service modules to avoid circular imports.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from typing import Sequence

from ownercheck.core.models.errors import APIRequestError, KubectlError

logger = logging.getLogger(__name__)

# "Error from server (Forbidden): pods is forbidden: ..." → reason, message
_SERVER_ERROR_RE = re.compile(r"^Error from server(?: \((?P<reason>[^)]*)\))?: (?P<message>.*)$", re.S)


def _run_kubectl(
    *args: str,
    timeout: int = 60,
) -> subprocess.CompletedProcess[str]:
    """Run a kubectl command and return the result."""
    return subprocess.run(
        ["kubectl", *args],
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def _kubectl_available() -> dict:
    """Check if kubectl is installed.

    Uses ``kubectl version --client -o json`` (the ``--short`` flag
    was removed in kubectl v1.28+).
    """
    try:
        result = _run_kubectl("version", "--client", "-o", "json", timeout=15)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return {"available": False, "version": None}

    if result.returncode != 0:
        return {"available": False, "version": None}

    try:
        data = json.loads(result.stdout)
        version = data.get("clientVersion", {}).get("gitVersion", "")
    except (ValueError, AttributeError):
        # Fall back to raw output
        version = result.stdout.strip()
    return {"available": True, "version": version}


def clean_server_error(stderr: str) -> tuple[str, str]:
    """Strip kubectl's ``Error from server (Reason):`` prefix.

    Returns:
        (reason, message). ``reason`` is empty when kubectl did not print one.
    """
    text = stderr.strip()
    match = _SERVER_ERROR_RE.match(text)
    if not match:
        return "", text
    return match.group("reason") or "", match.group("message").strip()


def get_raw(
    path: str,
    global_args: Sequence[str] = (),
    timeout: int = 60,
) -> dict:
    """GET a raw API path through ``kubectl get --raw`` and decode the JSON.

    Raises:
        KubectlError: If the kubectl binary is missing.
        APIRequestError: If the request fails, times out or returns non-JSON.
    """
    try:
        result = _run_kubectl(*global_args, "get", "--raw", path, timeout=timeout)
    except FileNotFoundError as e:
        raise KubectlError("kubectl not available") from e
    except subprocess.TimeoutExpired as e:
        logger.debug("GET %s timed out after %ss", path, timeout)
        raise APIRequestError(path, f"kubectl timed out after {timeout}s fetching {path}", "Timeout") from e

    if result.returncode != 0:
        reason, message = clean_server_error(result.stderr or result.stdout)
        logger.debug("GET %s failed (%s): %s", path, reason or result.returncode, message)
        raise APIRequestError(path, message or f"kubectl exited with {result.returncode}", reason)

    try:
        data = json.loads(result.stdout)
    except ValueError as e:
        raise APIRequestError(path, f"invalid JSON response from {path}: {e}") from e
    if not isinstance(data, dict):
        raise APIRequestError(path, f"unexpected response from {path}: {type(data).__name__}")
    return data
