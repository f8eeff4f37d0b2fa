"""
Tests for k8s_common — the kubectl subprocess seam.

Every test mocks _run_kubectl. No subprocess, no network.
"""

import json
import subprocess
from unittest.mock import patch

import pytest

from ownercheck.core.models.errors import APIRequestError, KubectlError
from ownercheck.core.services.k8s_common import (
    _kubectl_available,
    clean_server_error,
    get_raw,
)


# ── Helpers ──────────────────────────────────────────────────────

def _mock_result(returncode=0, stdout="", stderr=""):
    """Create a mock subprocess.CompletedProcess."""
    return type("Result", (), {
        "returncode": returncode, "stdout": stdout, "stderr": stderr,
    })()


# ═══════════════════════════════════════════════════════════════════
#  _kubectl_available
# ═══════════════════════════════════════════════════════════════════


class TestKubectlAvailable:
    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_available_with_version(self, mock_run):
        mock_run.return_value = _mock_result(stdout=json.dumps({
            "clientVersion": {"gitVersion": "v1.35.1"},
        }))
        assert _kubectl_available() == {"available": True, "version": "v1.35.1"}

    @patch("ownercheck.core.services.k8s_common._run_kubectl", side_effect=FileNotFoundError)
    def test_missing_binary(self, _):
        assert _kubectl_available() == {"available": False, "version": None}

    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_nonzero_exit(self, mock_run):
        mock_run.return_value = _mock_result(returncode=1)
        assert _kubectl_available()["available"] is False

    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_non_json_falls_back_to_raw(self, mock_run):
        mock_run.return_value = _mock_result(stdout="Client Version: v1.20.0\n")
        assert _kubectl_available()["version"] == "Client Version: v1.20.0"


# ═══════════════════════════════════════════════════════════════════
#  clean_server_error
# ═══════════════════════════════════════════════════════════════════


class TestCleanServerError:
    def test_with_reason(self):
        reason, message = clean_server_error(
            "Error from server (Forbidden): pods is forbidden: not authorized\n"
        )
        assert reason == "Forbidden"
        assert message == "pods is forbidden: not authorized"

    def test_without_reason(self):
        assert clean_server_error("Error from server: boom") == ("", "boom")

    def test_other_text_untouched(self):
        assert clean_server_error("  connection refused  ") == ("", "connection refused")


# ═══════════════════════════════════════════════════════════════════
#  get_raw
# ═══════════════════════════════════════════════════════════════════


class TestGetRaw:
    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_decodes_json(self, mock_run):
        mock_run.return_value = _mock_result(stdout='{"kind": "APIVersions", "versions": ["v1"]}')
        assert get_raw("/api")["versions"] == ["v1"]

    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_passes_global_args_first(self, mock_run):
        mock_run.return_value = _mock_result(stdout="{}")
        get_raw("/api", ["--context", "kind"], timeout=5)
        assert mock_run.call_args.args == ("--context", "kind", "get", "--raw", "/api")
        assert mock_run.call_args.kwargs == {"timeout": 5}

    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_server_error(self, mock_run):
        mock_run.return_value = _mock_result(
            returncode=1, stderr="Error from server (ServiceUnavailable): the server is currently unable to handle the request",
        )
        with pytest.raises(APIRequestError) as exc:
            get_raw("/apis/metrics.k8s.io/v1beta1")
        assert str(exc.value) == "the server is currently unable to handle the request"
        assert exc.value.reason == "ServiceUnavailable"
        assert exc.value.path == "/apis/metrics.k8s.io/v1beta1"

    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_invalid_json(self, mock_run):
        mock_run.return_value = _mock_result(stdout="not json")
        with pytest.raises(APIRequestError, match="invalid JSON"):
            get_raw("/api")

    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_non_object_json(self, mock_run):
        mock_run.return_value = _mock_result(stdout="[]")
        with pytest.raises(APIRequestError, match="unexpected response"):
            get_raw("/api")

    @patch("ownercheck.core.services.k8s_common._run_kubectl", side_effect=FileNotFoundError)
    def test_missing_binary(self, _):
        with pytest.raises(KubectlError, match="not available"):
            get_raw("/api")

    @patch("ownercheck.core.services.k8s_common._run_kubectl")
    def test_timeout_is_a_request_failure(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="kubectl", timeout=5)
        with pytest.raises(APIRequestError, match="timed out after 5s fetching /api") as exc:
            get_raw("/api", timeout=5)
        assert exc.value.reason == "Timeout"
        assert exc.value.path == "/api"
