"""Progress reporters for ``Network.learn_over_data``."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import List, TextIO, Tuple

from ..core.types import OutputOptions


class ConsoleReporter:
    """Rewrites a single status line with carriage returns.

    ``options`` selects which fields appear; ``OutputOptions.NONE`` silences
    the reporter entirely, free-form text included.
    """

    def __init__(self, options: OutputOptions = OutputOptions.ALL, stream: TextIO | None = None) -> None:
        self.options = options
        self.stream = stream

    def _write(self, text: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(text)
        stream.flush()

    def log(self, text: str) -> None:
        if self.options == OutputOptions.NONE:
            return
        self._write(text)

    def report(
        self,
        epoch: int,
        total_epochs: int,
        batch: int,
        total_batches: int,
        sample: int,
        batch_size: int,
        last_batch_accuracy: float,
    ) -> None:
        if self.options == OutputOptions.NONE:
            return
        line = "\r"
        if OutputOptions.CURRENT_EPOCH in self.options:
            line += f"Epoch: {epoch + 1}/{total_epochs} "
        if OutputOptions.CURRENT_BATCH in self.options:
            line += f"Batch: {batch + 1}/{total_batches} "
        if OutputOptions.CURRENT_DATA in self.options:
            line += f"Data: {sample + 1}/{batch_size} "
        if OutputOptions.LAST_BATCH_PERCENTAGE in self.options:
            line += f"Correct: {last_batch_accuracy:.0%}  "
        self._write(line)


class NullReporter:
    """Accepts every call and prints nothing."""

    options = OutputOptions.NONE

    def log(self, text: str) -> None:
        return None

    def report(self, *args: object) -> None:
        return None


@dataclass
class HistoryReporter:
    """Keeps every report and log call in memory."""

    options: OutputOptions = OutputOptions.ALL
    reports: List[Tuple[int, int, int, int, int, int, float]] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)

    def log(self, text: str) -> None:
        self.messages.append(text)

    def report(
        self,
        epoch: int,
        total_epochs: int,
        batch: int,
        total_batches: int,
        sample: int,
        batch_size: int,
        last_batch_accuracy: float,
    ) -> None:
        self.reports.append(
            (epoch, total_epochs, batch, total_batches, sample, batch_size, last_batch_accuracy)
        )

    @property
    def text(self) -> str:
        return "".join(self.messages)


__all__ = ["ConsoleReporter", "HistoryReporter", "NullReporter"]
