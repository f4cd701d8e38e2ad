"""Reporting utilities: progress lines, metric sinks, manifests and plots."""

from .artifacts import write_manifest
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .progress import ConsoleReporter, HistoryReporter, NullReporter

__all__ = [
    "ConsoleReporter",
    "CsvSink",
    "HistoryReporter",
    "JsonlSink",
    "NullReporter",
    "PlotAdapter",
    "write_manifest",
]
