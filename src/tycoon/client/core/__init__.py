"""Turn orchestration core: phases, rules policy, AI strategy and sync."""
from tycoon.client.core.notices import ActionResult, Notice
from tycoon.client.core.orchestrator import TurnOrchestrator, TurnView
from tycoon.client.core.session import GameSession

__all__ = ["ActionResult", "Notice", "TurnOrchestrator", "TurnView", "GameSession"]
