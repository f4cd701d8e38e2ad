"""Preset configs and end-to-end run assembly."""

from __future__ import annotations

import json
import logging
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.activations import Activation
from ..core.network import Network
from ..core.types import OutputOptions, RunResult
from ..data import registry
from ..io.xml import XmlNetworkLoader, XmlNetworkSaver
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.progress import ConsoleReporter, NullReporter

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "xor", "options": {"repeat": 25}},
        "model": {"d_in": 2, "hidden": [4], "d_out": 2, "activation": "sigmoid"},
        "train": {
            "epochs": 60,
            "batch_size": 4,
            "lr": 2.0,
            "seed": 3,
            "run_dir": "runs/xor",
            "report": "none",
            "enable_plots": False,
        },
    },
    "mnist-smoke": {
        "data": {"name": "mnist", "options": {"max_items": 64}},
        "model": {"d_in": 784, "hidden": [16], "d_out": 10, "activation": "tanh"},
        "train": {
            "epochs": 1,
            "batch_size": 8,
            "lr": 0.5,
            "seed": 1,
            "run_dir": "runs/mnist-smoke",
            "report": "none",
            "enable_plots": False,
        },
    },
    "mnist-digits": {
        "data": {"name": "mnist", "options": {}},
        "model": {"d_in": 784, "hidden": [30], "d_out": 10, "activation": "tanh"},
        "train": {
            "epochs": 3,
            "batch_size": 10,
            "lr": 3.0,
            "seed": 0,
            "run_dir": "runs/mnist-digits",
            "report": "console",
            "enable_plots": False,
        },
    },
}

REQUIRED_SECTIONS = frozenset({"data", "model", "train"})


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    try:
        return deepcopy(dict(_PRESETS[name]))
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def load_override(path: str | Path) -> Dict[str, object]:
    """Read a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    if path.suffix.lower() in {".yml", ".yaml"}:
        try:
            import yaml
        except ImportError as exc:
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return dict(data)


def merge(base: Dict[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    """Recursively merge ``override`` into ``base`` and return ``base``."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), Mapping):
            base[key] = merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Load data, build or load a network, train it and write the run artifacts."""

    missing = REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    activation = Activation.from_name(str(model_cfg.get("activation", Activation.TANH.value)))
    strict = model_cfg.get("strict")
    seed = int(train_cfg.get("seed", 0))
    epochs = int(train_cfg.get("epochs", 1))
    batch_size = int(train_cfg.get("batch_size", 1))
    rng = np.random.default_rng(seed)

    layers = _build_layers(model_cfg, dataset)
    load_path = train_cfg.get("load_path")
    if load_path:
        network = Network.load(XmlNetworkLoader(load_path), activation=activation, strict=strict)
        if network.layer_sizes[0] != dataset.input_size or network.layer_sizes[-1] != dataset.output_size:
            raise ValueError(
                f"Loaded network {network.layer_sizes} does not fit dataset "
                f"{dataset.name!r} ({dataset.input_size} -> {dataset.output_size})"
            )
        if "lr" in train_cfg:
            network.learning_rate = float(train_cfg["lr"])
    else:
        network = Network.create(
            layers,
            float(train_cfg.get("lr", Network.DEFAULT_LEARNING_RATE)),
            activation=activation,
            seed=rng,
            strict=strict,
        )

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        layers=network.layer_sizes,
        activation=activation.value,
        learning_rate=network.learning_rate,
        edges=sum(c.edge_count for c in network.connectivities),
        source=str(load_path) if load_path else "random",
    )

    history = network.learn_over_data(
        dataset.train,
        epochs,
        batch_size,
        reporter=_build_reporter(str(train_cfg.get("report", "none"))),
        test_set=dataset.test if dataset.test is not None and len(dataset.test) else None,
        rng=rng,
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    for stats in history:
        metrics = stats.as_metrics()
        jsonl.on_epoch(stats.epoch, metrics)
        csv_sink.on_epoch(stats.epoch, metrics)
        plots.on_epoch(stats.epoch, metrics)
    plots.close()

    network_path = ""
    save_path = train_cfg.get("save_path")
    if save_path:
        saver = XmlNetworkSaver(save_path, overwrite=bool(train_cfg.get("overwrite", False)))
        network.save(saver)
        network_path = str(saver.path)

    manifest = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config, default=str)),
        dataset_provenance=dataset.provenance,
        layer_sizes=network.layer_sizes,
    )
    last = history[-1] if history else None
    logger.info("run finished in %s", run_dir)
    return RunResult(
        epochs=len(history),
        samples=sum(stats.samples for stats in history),
        final_accuracy=last.train_accuracy if last else 0.0,
        test_accuracy=last.test_accuracy if last else None,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        network_path=network_path,
    )


def _build_layers(model_cfg: Mapping[str, object], dataset: registry.DatasetSpec) -> List[int]:
    if "layers" in model_cfg:
        layers = [int(size) for size in model_cfg["layers"]]
    else:
        layers = [int(model_cfg.get("d_in", dataset.input_size))]
        layers.extend(int(h) for h in model_cfg.get("hidden", []))
        layers.append(int(model_cfg.get("d_out", dataset.output_size)))
    if layers[0] != dataset.input_size:
        raise ValueError(f"Configured input width {layers[0]} but dataset samples hold {dataset.input_size}")
    if layers[-1] != dataset.output_size:
        raise ValueError(f"Configured output width {layers[-1]} but dataset has {dataset.output_size} classes")
    return layers


def _build_reporter(kind: str):
    if kind == "console":
        return ConsoleReporter(OutputOptions.ALL ^ OutputOptions.CURRENT_DATA)
    if kind == "none":
        return NullReporter()
    raise ValueError(f"Unknown reporter: {kind}")


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if train_cfg.get("run_dir"):
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _print_startup_summary(
    *,
    dataset_name: str,
    layers: Sequence[int],
    activation: str,
    learning_rate: float,
    edges: int,
    source: str,
) -> None:
    print("=== sparseprop run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Layers        : {list(layers)}")
    print(f"Activation    : {activation}")
    print(f"Learning rate : {learning_rate}")
    print(f"Edges         : {edges}")
    print(f"Network       : {source}")
    print("======================")


__all__ = ["load_override", "load_preset", "merge", "presets", "run_pipeline"]
