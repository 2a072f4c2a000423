"""Qt bindings for the turn orchestrator."""
