# src/wallstore/core/retention/__init__.py
"""Retention management for Content Store entries.

Provides RetentionSweeper for identifying and removing expired content, and
PeriodicSweeper for running it in the background. Addresses stay on the
ledger; only the bodies are removed.
"""

from wallstore.core.retention.sweep import PeriodicSweeper, RetentionSweeper, SweepResult

__all__ = ["PeriodicSweeper", "RetentionSweeper", "SweepResult"]
