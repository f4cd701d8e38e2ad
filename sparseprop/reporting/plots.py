"""Headless-safe plotting adapter."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class PlotAdapter:
    """Collect per-epoch accuracy and optionally emit a matplotlib figure."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, float | None]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        test = metrics.get("test_accuracy")
        self._history.append((epoch, float(metrics.get("accuracy", 0.0)), None if test is None else float(test)))

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs = [entry[0] + 1 for entry in self._history]
        fig, ax = plt.subplots()
        ax.plot(epochs, [entry[1] for entry in self._history], label="train")
        tested = [(e, entry[2]) for e, entry in zip(epochs, self._history) if entry[2] is not None]
        if tested:
            ax.plot(*zip(*tested), label="test")
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Accuracy")
        ax.set_ylim(0.0, 1.0)
        ax.set_title("Training Accuracy")
        ax.legend()
        plot_path = self.run_dir / "accuracy.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
