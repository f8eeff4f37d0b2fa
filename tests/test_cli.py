"""
Tests for CLI commands — check and global options.

Runs are against snapshot files, so no kubectl is needed.
"""

import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ownercheck.core.models import DiscoveryError, Tally
from ownercheck.core.use_cases.check import CheckResult
from ownercheck.main import EXIT_CANCELLED, cli

_SNAPSHOT = textwrap.dedent("""\
    resources:
      - groupVersion: v1
        resources:
          - {name: nodes, kind: Node, namespaced: false, verbs: [get, list, delete]}
          - {name: pods, kind: Pod, namespaced: true, verbs: [get, list, delete]}
    objects:
      - apiVersion: v1
        resource: nodes
        kind: Node
        metadata: {name: node1, uid: node1uid}
      - apiVersion: v1
        resource: pods
        kind: Pod
        metadata:
          name: pod1
          namespace: ns1
          uid: poduid1
          ownerReferences:
            - {apiVersion: v1, kind: Node, name: nodex, uid: node1uid}
""")


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    """Isolated cwd with a snapshot file and no settings file."""
    monkeypatch.chdir(tmp_path)
    for var in ("OWNERCHECK_OUTPUT", "OWNERCHECK_SNAPSHOT", "OWNERCHECK_WORKERS"):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "cluster.yml").write_text(_SNAPSHOT)
    return tmp_path


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "ownerReferences" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "ownercheck, version 0.1.0" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_table_output(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml"])

        assert result.exit_code == 0
        assert result.stdout.splitlines()[0].split() == [
            "GROUP", "RESOURCE", "NAMESPACE", "NAME", "OWNER_UID", "LEVEL", "MESSAGE",
        ]
        assert "ownerReference name (nodex) does not match owner name (node1)" in result.stdout
        assert result.stderr.splitlines() == [
            "fetching v1, nodes",
            "got 1 item",
            "fetching v1, pods",
            "got 1 item",
            "1 error, 0 warnings",
        ]

    def test_json_output(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml", "-o", "json"])

        assert result.exit_code == 0
        record = json.loads(result.stdout)
        assert record["name"] == "pod1"
        assert record["level"] == "Error"

    def test_json_flag(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["ownerReference"]["name"] == "nodex"

    def test_quiet_hides_progress(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["-q", "check", "--snapshot", "cluster.yml"])
        assert result.exit_code == 0
        assert result.stderr.splitlines() == ["1 error, 0 warnings"]

    def test_parallel_workers(self, workdir):
        runner = CliRunner()
        seq = runner.invoke(cli, ["check", "--snapshot", "cluster.yml"])
        par = runner.invoke(cli, ["check", "--snapshot", "cluster.yml", "--workers", "4"])
        assert par.exit_code == 0
        assert par.stdout == seq.stdout

    def test_settings_file(self, workdir):
        (workdir / "ownercheck.yml").write_text("check:\n  output: json\n  snapshot: cluster.yml\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["name"] == "pod1"

    def test_explicit_config(self, workdir):
        (workdir / "other.yml").write_text("snapshot: cluster.yml\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", "other.yml", "check"])
        assert result.exit_code == 0
        assert "1 error, 0 warnings" in result.stderr

    def test_env_setting(self, workdir, monkeypatch):
        monkeypatch.setenv("OWNERCHECK_SNAPSHOT", "cluster.yml")
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["namespace"] == "ns1"


class TestCheckErrors:
    """Setup failures exit 1 with a message on stderr."""

    def test_invalid_output_format(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml", "-o", "yaml"])
        assert result.exit_code == 2  # rejected by click before the run

    def test_invalid_setting(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml", "--workers", "0"])
        assert result.exit_code == 1
        assert "❌ Invalid configuration" in result.stderr
        assert result.stdout == ""

    def test_zero_qps_rejected(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml", "--qps", "0"])
        assert result.exit_code == 1
        assert "-1 to disable throttling" in result.stderr

    def test_broken_settings_file(self, workdir):
        (workdir / "ownercheck.yml").write_text("qps: [unclosed\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml"])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.stderr

    def test_missing_snapshot(self, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--snapshot", "nope.yml"])
        assert result.exit_code == 1
        assert "Snapshot file not found" in result.stderr

    @patch("ownercheck.core.services.k8s_common._kubectl_available",
           return_value={"available": False, "version": None})
    def test_kubectl_missing(self, _, workdir):
        runner = CliRunner()
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 1
        assert "kubectl not available" in result.stderr

    def test_total_discovery_failure(self, workdir):
        (workdir / "down.yml").write_text("resources: []\n")
        runner = CliRunner()
        with patch(
            "ownercheck.adapters.snapshot.SnapshotClient.discover",
            side_effect=DiscoveryError("unable to retrieve the server API groups: connection refused"),
        ):
            result = runner.invoke(cli, ["check", "--snapshot", "down.yml"])
        assert result.exit_code == 1
        assert "connection refused" in result.stderr


class TestCheckCancelled:
    def test_exit_code(self, workdir):
        cancelled = CheckResult(tally=Tally(errors=1), cancelled=True)
        runner = CliRunner()
        with patch("ownercheck.core.use_cases.check.run_check", return_value=cancelled):
            result = runner.invoke(cli, ["check", "--snapshot", "cluster.yml"])
        assert result.exit_code == EXIT_CANCELLED
        assert "partial result: 1 error, 0 warnings" in result.stderr
