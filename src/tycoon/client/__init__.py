"""Tycoon client: turn orchestration, AI autopilot and service access."""
