"""Command line entry point for sparseprop training runs."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from sparseprop.training import pipelines


def _format_result(result) -> str:
    payload = {
        "epochs": result.epochs,
        "samples": result.samples,
        "accuracy": result.final_accuracy,
        "test_accuracy": result.test_accuracy,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if result.network_path:
        payload["network"] = result.network_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--preset", choices=preset_names, default="xor", help="Preset configuration to execute")
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--epochs", type=int, help="Number of passes over the training set")
    parser.add_argument("--batch-size", type=int, help="Samples per gradient update")
    parser.add_argument("--lr", type=float, help="Learning rate")
    parser.add_argument("--seed", type=int, help="Seed for initialisation and shuffling")
    parser.add_argument("--data-dir", type=Path, help="Directory holding IDX digit files")
    parser.add_argument("--run-dir", type=Path, help="Directory for metrics and manifest")
    parser.add_argument("--save", type=Path, help="Write the trained network to this XML file")
    parser.add_argument("--overwrite", action="store_true", help="Allow --save to replace an existing file")
    parser.add_argument("--load", type=Path, help="Start from a network stored in this XML file")
    parser.add_argument("--strict", action="store_true", help="Check internal invariants while training")
    parser.add_argument("--quiet", action="store_true", help="Suppress the progress line")
    parser.add_argument("--verbose", action="store_true", help="Log epoch summaries to stderr")
    parser.add_argument("--enable-plots", action="store_true", help="Write accuracy.png to the run directory")
    parser.add_argument("--list-presets", action="store_true", help="List available presets and exit")
    parser.add_argument("--dump-config", type=Path, help="Dump the resolved config to a JSON file")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = pipelines.load_override(args.config)
        if pipelines.REQUIRED_SECTIONS <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge(config, override)

    train = config.setdefault("train", {})
    model = config.setdefault("model", {})
    data = config.setdefault("data", {})
    if args.load is not None:
        train["load_path"] = str(args.load)
        if args.lr is None:
            # Keep the learning rate stored with the network.
            train.pop("lr", None)
    for key, value in (("epochs", args.epochs), ("batch_size", args.batch_size), ("lr", args.lr), ("seed", args.seed)):
        if value is not None:
            train[key] = value
    if args.data_dir is not None:
        data.setdefault("options", {})["data_dir"] = str(args.data_dir)
    if args.run_dir is not None:
        train["run_dir"] = str(args.run_dir)
    if args.save is not None:
        train["save_path"] = str(args.save)
    if args.overwrite:
        train["overwrite"] = True
    if args.strict:
        model["strict"] = True
    if args.quiet:
        train["report"] = "none"
    if args.enable_plots:
        train["enable_plots"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = build_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
