"""Utilities for populating the demo tables with synthetic data."""

from .synthetic_data import SeedStats, seed_synthetic_data

__all__ = ["seed_synthetic_data", "SeedStats"]
