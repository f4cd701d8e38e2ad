import csv
import io
import json

from sparseprop.core.types import OutputOptions
from sparseprop.reporting.artifacts import write_manifest
from sparseprop.reporting.metrics import CsvSink, JsonlSink
from sparseprop.reporting.plots import PlotAdapter
from sparseprop.reporting.progress import ConsoleReporter, HistoryReporter, NullReporter


def test_console_reporter_formats_selected_fields():
    stream = io.StringIO()
    reporter = ConsoleReporter(OutputOptions.ALL, stream)
    reporter.report(0, 2, 1, 5, 2, 10, 0.5)
    assert stream.getvalue() == "\rEpoch: 1/2 Batch: 2/5 Data: 3/10 Correct: 50%  "

    stream = io.StringIO()
    reporter = ConsoleReporter(OutputOptions.CURRENT_EPOCH | OutputOptions.LAST_BATCH_PERCENTAGE, stream)
    reporter.report(3, 4, 0, 1, 0, 1, 1.0)
    reporter.log("done")
    assert stream.getvalue() == "\rEpoch: 4/4 Correct: 100%  done"


def test_console_reporter_none_is_silent():
    stream = io.StringIO()
    reporter = ConsoleReporter(OutputOptions.NONE, stream)
    reporter.report(0, 1, 0, 1, 0, 1, 0.0)
    reporter.log("hello")
    assert stream.getvalue() == ""


def test_null_and_history_reporters():
    NullReporter().report(0, 1, 0, 1, 0, 1, 0.0)
    history = HistoryReporter()
    history.report(0, 1, 0, 1, 0, 1, 0.25)
    history.log("a")
    history.log("b")
    assert history.reports == [(0, 1, 0, 1, 0, 1, 0.25)]
    assert history.text == "ab"


def test_metric_sinks_write_rows(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", seed=3, sha="abc")
    sink = CsvSink(tmp_path / "m.csv")
    for epoch, acc in enumerate([0.5, 0.75]):
        jsonl.on_epoch(epoch, {"accuracy": acc, "samples": 8, "note": "skipped"})
        sink.on_epoch(epoch, {"accuracy": acc, "samples": 8})
    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert records[1] == {"epoch": 1, "split": "train", "seed": 3, "sha": "abc", "accuracy": 0.75, "samples": 8.0}
    with (tmp_path / "m.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["accuracy"] for row in rows] == ["0.5", "0.75"]


def test_manifest_contents(tmp_path):
    path = write_manifest(
        tmp_path / "run" / "manifest.json",
        config={"train": {"epochs": 1}},
        dataset_provenance={"type": "xor"},
        layer_sizes=[2, 3, 2],
    )
    manifest = json.loads((tmp_path / "run" / "manifest.json").read_text())
    assert path.endswith("manifest.json")
    assert manifest["config"] == {"train": {"epochs": 1}}
    assert manifest["dataset"] == {"type": "xor"}
    assert manifest["layer_sizes"] == [2, 3, 2]
    assert "git_sha" in manifest and "generated_at" in manifest


def test_plot_adapter_writes_accuracy_png(tmp_path):
    plots = PlotAdapter(tmp_path, enable_plots=True)
    plots.on_epoch(0, {"accuracy": 0.5, "test_accuracy": 0.25})
    plots.on_epoch(1, {"accuracy": 0.75})
    assert plots.close() == tmp_path / "accuracy.png"
    assert (tmp_path / "accuracy.png").stat().st_size > 0


def test_plot_adapter_disabled_writes_nothing(tmp_path):
    plots = PlotAdapter(tmp_path / "off")
    plots.on_epoch(0, {"accuracy": 0.5})
    assert plots.close() is None
    assert not (tmp_path / "off").exists()


def test_output_options_all_covers_every_bit():
    assert OutputOptions.ALL.value == 0b1111_1111
    for option in (
        OutputOptions.WHEN_FINISHED,
        OutputOptions.CURRENT_EPOCH,
        OutputOptions.CURRENT_BATCH,
        OutputOptions.CURRENT_DATA,
        OutputOptions.LAST_BATCH_PERCENTAGE,
    ):
        assert option in OutputOptions.ALL
    assert OutputOptions.CURRENT_DATA not in OutputOptions.ALL ^ OutputOptions.CURRENT_DATA
