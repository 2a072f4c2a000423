"""Tycoon turn orchestration and AI strategy core."""

__version__ = "0.1.0"
