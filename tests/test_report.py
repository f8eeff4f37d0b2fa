"""
Tests for reporting — table layout, JSON lines, diagnostics and tally.
"""

import io
import json

import pytest

from ownercheck.core.models import (
    Finding,
    GroupVersionResource,
    Level,
    ObjectRef,
    OwnerReference,
    Tally,
)
from ownercheck.core.services.report import (
    TABLE_HEADER,
    Diagnostics,
    JsonSink,
    Reporter,
    TableSink,
    format_table,
    make_sink,
)

PODS = GroupVersionResource(version="v1", resource="pods")
NODES = GroupVersionResource(version="v1", resource="nodes")


def _finding(resource=PODS, name="pod1", level=Level.ERROR, message="no object found for uid"):
    return Finding(
        resource=resource,
        child=ObjectRef(api_version="v1", kind="Pod", namespace="ns1", name=name, uid=f"{name}uid"),
        owner_reference=OwnerReference(api_version="v1", kind="Node", name="n", uid="nodeuid"),
        level=level,
        message=message,
    )


class TestFormatTable:
    def test_padding_of_three(self):
        out = format_table([["A", "BB", "C"], ["aaaa", "b", "last column"]])
        assert out == "A      BB   C\naaaa   b    last column\n"

    def test_last_column_not_padded(self):
        out = format_table([["X", "Y"], ["x", "a much longer trailing cell"]])
        assert out.splitlines()[0] == "X   Y"

    def test_empty(self):
        assert format_table([]) == ""


class TestTableSink:
    def test_nothing_written_without_findings(self):
        stream = io.StringIO()
        sink = TableSink(stream)
        sink.flush()
        assert stream.getvalue() == ""

    def test_header_and_row(self):
        stream = io.StringIO()
        sink = TableSink(stream)
        sink.emit(_finding())
        sink.flush()
        lines = stream.getvalue().splitlines()
        assert lines[0].split() == TABLE_HEADER
        assert lines[1].split() == ["pods", "ns1", "pod1", "nodeuid", "Error", "no", "object", "found", "for", "uid"]
        assert lines[1].startswith(" " * len("GROUP   "))

    def test_header_written_once(self):
        stream = io.StringIO()
        sink = TableSink(stream)
        sink.emit(_finding(resource=NODES))
        sink.flush()
        sink.emit(_finding())
        sink.flush()
        assert stream.getvalue().count("GROUP") == 1
        assert len(stream.getvalue().splitlines()) == 3


class TestJsonSink:
    def test_one_compact_object_per_line(self):
        stream = io.StringIO()
        sink = JsonSink(stream)
        sink.emit(_finding())
        sink.emit(_finding(level=Level.WARNING))
        lines = stream.getvalue().splitlines()
        assert len(lines) == 2
        assert " " not in lines[0].split('"message"')[0]
        record = json.loads(lines[1])
        assert record["level"] == "Warning"
        assert record["ownerReference"]["uid"] == "nodeuid"

    def test_no_header(self):
        stream = io.StringIO()
        JsonSink(stream).flush()
        assert stream.getvalue() == ""


class TestMakeSink:
    def test_table(self):
        assert isinstance(make_sink(""), TableSink)

    def test_json(self):
        assert isinstance(make_sink("json"), JsonSink)

    def test_invalid(self):
        with pytest.raises(ValueError, match="only '' and 'json' are supported: yaml"):
            make_sink("yaml")


class TestDiagnostics:
    def test_warning_prefix(self):
        stream = io.StringIO()
        Diagnostics(stream).warning("could not list x")
        assert stream.getvalue() == "warning: could not list x\n"

    def test_quiet_suppresses_progress_only(self):
        stream = io.StringIO()
        d = Diagnostics(stream, progress=False)
        d.progress("fetching v1, pods")
        d.warning("w")
        d.notice("No invalid ownerReferences found")
        assert stream.getvalue() == "warning: w\nNo invalid ownerReferences found\n"


class TestReporter:
    def test_fold_from_initial(self):
        stream, err = io.StringIO(), io.StringIO()
        reporter = Reporter(TableSink(stream), Diagnostics(err))
        tally = reporter.consume(
            [_finding(), _finding(level=Level.WARNING), _finding(name="pod2")],
            Tally(warnings=1),
        )
        assert tally == Tally(errors=2, warnings=2)
        reporter.summarize(tally)
        assert err.getvalue() == "2 errors, 2 warnings\n"

    def test_clean_run(self):
        err = io.StringIO()
        reporter = Reporter(TableSink(io.StringIO()), Diagnostics(err))
        reporter.summarize(reporter.consume([]))
        assert err.getvalue() == "No invalid ownerReferences found\n"

    def test_partial_tally_kept_on_error(self):
        def findings():
            yield _finding()
            raise RuntimeError("interrupted")

        stream = io.StringIO()
        reporter = Reporter(TableSink(stream), Diagnostics(io.StringIO()))
        with pytest.raises(RuntimeError):
            reporter.consume(findings())
        assert reporter.tally == Tally(errors=1)
        assert "pod1" in stream.getvalue()  # buffered rows still flushed
