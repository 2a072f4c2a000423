"""
Qt signal bridge for the turn orchestrator.

Re-emits phase changes, view updates and notices as Qt signals, and
accepts intents from widgets, scheduling them on the running asyncio
loop (a qasync QEventLoop in the application).
"""
import asyncio
import logging
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from tycoon.client.core.notices import ActionResult, Notice
from tycoon.client.core.orchestrator import TurnView
from tycoon.client.core.session import GameSession

logger = logging.getLogger(__name__)


class OrchestratorBridge(QObject):
    """
    Connects a GameSession to Qt.

    Signals:
        phase_changed(str): turn phase value, emitted on change only
        view_changed(dict): full TurnView as a dict
        notice_posted(str, str): message and level
        action_finished(str, bool, str): action name, success, message
    """

    phase_changed = pyqtSignal(str)
    view_changed = pyqtSignal(dict)
    notice_posted = pyqtSignal(str, str)
    action_finished = pyqtSignal(str, bool, str)

    def __init__(self, session: GameSession, parent=None):
        super().__init__(parent)
        self.session = session
        self._last_phase: Optional[str] = None
        self._actions = {
            "roll": session.orchestrator.roll,
            "buy": session.orchestrator.buy,
            "skip": session.orchestrator.skip,
            "end_turn": session.orchestrator.end_turn,
            "pay_fine": session.orchestrator.pay_fine,
            "use_card": session.orchestrator.use_card,
            "stay": session.orchestrator.stay,
            "develop": session.properties.develop,
            "downgrade": session.properties.downgrade,
            "mortgage": session.properties.mortgage,
            "unmortgage": session.properties.unmortgage,
            "sell": session.properties.sell,
            "declare_bankruptcy": session.properties.declare_bankruptcy,
            "create_trade": session.trades.create,
            "accept_trade": session.trades.accept,
            "decline_trade": session.trades.decline,
            "counter_trade": session.trades.counter,
            "vote_to_remove": session.orchestrator.votes.vote_to_remove,
            "vote_end_by_networth": session.orchestrator.votes.vote_end_by_networth,
        }
        session.orchestrator.add_listener(self._on_view)
        session.orchestrator.notify.add_sink(self._on_notice)

    def _on_view(self, view: TurnView) -> None:
        phase = view.phase.value
        if phase != self._last_phase:
            self._last_phase = phase
            self.phase_changed.emit(phase)
        self.view_changed.emit(view.to_dict())

    def _on_notice(self, notice: Notice) -> None:
        self.notice_posted.emit(notice.message, notice.level.value)

    async def perform(self, action: str, **kwargs) -> ActionResult:
        """Run a named intent and report the outcome through action_finished."""
        handler = self._actions.get(action)
        if handler is None:
            logger.warning(f"Unknown action requested: {action}")
            result = ActionResult.fail(f"Unknown action: {action}")
        else:
            result = await handler(**kwargs)
        self.action_finished.emit(action, result.success, result.message)
        return result

    def submit(self, action: str, **kwargs) -> asyncio.Future:
        """Schedule an intent from a Qt slot."""
        return asyncio.ensure_future(self.perform(action, **kwargs))
