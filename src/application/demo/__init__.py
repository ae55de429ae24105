"""The TimescaleDB demo workflow."""

from .runner import DemoReport, DemoRunner, StepExecutionError

__all__ = ["DemoRunner", "DemoReport", "StepExecutionError"]
