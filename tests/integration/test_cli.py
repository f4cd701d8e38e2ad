import json
from pathlib import Path

import pytest

from cli.main import main


def _last_json(capsys):
    return json.loads(capsys.readouterr().out.strip().splitlines()[-1])


def test_cli_xor_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "xor", "--epochs", "2", "--quiet"])
    payload = _last_json(capsys)
    run_dir = Path("runs/xor")
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "manifest.json").exists()
    assert payload["epochs"] == 2
    assert payload["samples"] == 200


def test_cli_save_then_load(tmp_path, capsys):
    network = tmp_path / "xor.xml"
    main(["--epochs", "1", "--run-dir", str(tmp_path / "a"), "--save", str(network), "--quiet"])
    assert _last_json(capsys)["network"] == str(network)

    main(["--epochs", "1", "--run-dir", str(tmp_path / "b"), "--save", str(network), "--overwrite", "--quiet"])
    capsys.readouterr()

    main(["--load", str(network), "--epochs", "1", "--run-dir", str(tmp_path / "c"), "--quiet", "--strict"])
    payload = _last_json(capsys)
    assert payload["epochs"] == 1
    manifest = json.loads((tmp_path / "c" / "manifest.json").read_text())
    assert manifest["config"]["train"]["load_path"] == str(network)
    assert "lr" not in manifest["config"]["train"]


def test_cli_config_override_and_dump(tmp_path, capsys):
    override = tmp_path / "override.yaml"
    override.write_text("train:\n  epochs: 1\n  batch_size: 2\nmodel:\n  hidden: [3]\n")
    dump = tmp_path / "resolved.json"
    main(
        [
            "--config",
            str(override),
            "--run-dir",
            str(tmp_path / "run"),
            "--dump-config",
            str(dump),
            "--quiet",
        ]
    )
    resolved = json.loads(dump.read_text())
    assert resolved["train"]["epochs"] == 1
    assert resolved["train"]["batch_size"] == 2
    assert resolved["model"]["hidden"] == [3]
    assert resolved["data"]["name"] == "xor"
    assert _last_json(capsys)["samples"] == 100


def test_cli_list_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.split() == ["mnist-digits", "mnist-smoke", "xor"]


def test_cli_mnist_directory(tmp_path, capsys):
    from sparseprop.data.idx import build_offline_fixture

    build_offline_fixture(tmp_path / "digits", train_items=30, test_items=10)
    main(
        [
            "--preset",
            "mnist-smoke",
            "--data-dir",
            str(tmp_path / "digits"),
            "--run-dir",
            str(tmp_path / "run"),
            "--enable-plots",
            "--quiet",
        ]
    )
    payload = _last_json(capsys)
    assert payload["samples"] == 24
    assert (tmp_path / "run" / "accuracy.png").exists()
