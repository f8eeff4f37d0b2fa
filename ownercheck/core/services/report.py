"""
Reporting — diagnostics stream, finding sinks and the final tally.

Two output streams:
  * primary (stdout): findings, through exactly one FindingSink
    (TableSink or JsonSink), chosen once per run by make_sink().
  * diagnostic (stderr): progress lines, degraded-failure warnings and
    the closing summary, through Diagnostics.

Counting is a fold over the finding stream (Reporter.consume) that
starts from the number of recorded discovery/list failures.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import Iterable, TextIO

from ownercheck.core.models.finding import Finding, Tally

logger = logging.getLogger(__name__)

TABLE_HEADER = ["GROUP", "RESOURCE", "NAMESPACE", "NAME", "OWNER_UID", "LEVEL", "MESSAGE"]

# Same layout as kubectl's printers: minwidth 0, padding 3, blank pad char
_TABLE_PADDING = 3


class Diagnostics:
    """Human-readable side channel (stderr by default).

    Safe to call from fetch worker threads; lines never tear.
    """

    def __init__(self, stream: TextIO | None = None, progress: bool = True):
        self._stream = stream
        self._progress = progress
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def _write(self, line: str) -> None:
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    def progress(self, message: str) -> None:
        """Progress notice (fetching / got). Suppressed in quiet mode."""
        if self._progress:
            self._write(message)

    def warning(self, message: str) -> None:
        logger.debug("warning: %s", message)
        self._write(f"warning: {message}")

    def notice(self, message: str) -> None:
        self._write(message)


class FindingSink(ABC):
    """Destination for findings. Exactly one is active per run."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    @abstractmethod
    def emit(self, finding: Finding) -> None:
        """Accept one finding."""

    def flush(self) -> None:
        """Write out anything buffered. Called at resource-type boundaries."""
        self.stream.flush()


class TableSink(FindingSink):
    """Tab-aligned table, header written lazily before the first row.

    Rows are buffered and column widths computed per flushed block, so
    output appears one resource type at a time.
    """

    def __init__(self, stream: TextIO | None = None):
        super().__init__(stream)
        self._rows: list[list[str]] = []
        self._header_written = False

    def emit(self, finding: Finding) -> None:
        if not self._header_written:
            self._header_written = True
            self._rows.append(list(TABLE_HEADER))
        self._rows.append(finding.to_row())

    def flush(self) -> None:
        if self._rows:
            self.stream.write(format_table(self._rows))
            self._rows = []
        super().flush()


class JsonSink(FindingSink):
    """One compact JSON object per line per finding."""

    def emit(self, finding: Finding) -> None:
        self.stream.write(json.dumps(finding.to_dict(), separators=(",", ":")) + "\n")


def make_sink(output: str, stream: TextIO | None = None) -> FindingSink:
    """Select the sink for an output format ('' = table, 'json')."""
    if output == "":
        return TableSink(stream)
    if output == "json":
        return JsonSink(stream)
    raise ValueError(f"invalid output format, only '' and 'json' are supported: {output}")


def format_table(rows: list[list[str]]) -> str:
    """Align cells into columns. The last column is never padded."""
    if not rows:
        return ""
    columns = max(len(r) for r in rows)
    widths = [0] * columns
    for row in rows:
        for i, cell in enumerate(row[:-1]):
            widths[i] = max(widths[i], len(cell))

    lines = []
    for row in rows:
        cells = [cell.ljust(widths[i] + _TABLE_PADDING) for i, cell in enumerate(row[:-1])]
        if row:
            cells.append(row[-1])
        lines.append("".join(cells))
    return "\n".join(lines) + "\n"


class Reporter:
    """Feeds findings to the sink and folds them into a Tally."""

    def __init__(self, sink: FindingSink, diagnostics: Diagnostics):
        self.sink = sink
        self.diagnostics = diagnostics
        # Running count; still valid if the stream raises part-way
        self.tally = Tally()

    def consume(self, findings: Iterable[Finding], initial: Tally | None = None) -> Tally:
        """Emit every finding in order, flushing at each resource-type change.

        Args:
            findings: Findings in catalog, fetch, declaration order.
            initial: Starting tally (recorded failures count as warnings).

        Returns:
            Final tally.
        """
        self.tally = initial or Tally()
        current = None
        try:
            for finding in findings:
                if current is not None and finding.resource != current:
                    self.sink.flush()
                current = finding.resource
                self.sink.emit(finding)
                self.tally = self.tally.add(finding.level)
        finally:
            self.sink.flush()
        return self.tally

    def summarize(self, tally: Tally) -> None:
        self.diagnostics.notice(tally.summary())
