"""Run assembly on top of the core engine."""

from .pipelines import load_override, load_preset, merge, presets, run_pipeline

__all__ = ["load_override", "load_preset", "merge", "presets", "run_pipeline"]
