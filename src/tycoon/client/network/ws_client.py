"""
WebSocket client for a remote game service.

Requests are JSON messages {"type", "request_id", "data"}; the reply
carrying the same request_id resolves the pending call.
"""
import asyncio
import json
import logging
import uuid
from typing import Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from tycoon.client.network.service import GameService, ServiceError, ServiceUnavailable
from tycoon.shared.enums import JailCardType, MessageType
from tycoon.shared.models import GameSnapshot, TradeOffer

logger = logging.getLogger(__name__)


class WebSocketGameService(GameService):
    """GameService implementation speaking JSON over a websocket."""

    def __init__(self, host: str = "127.0.0.1", port: int = 8765, request_timeout: float = 15.0):
        self.host = host
        self.port = port
        self.request_timeout = request_timeout
        self._ws = None
        self._receiver: Optional[asyncio.Task] = None
        self._pending: Dict[str, asyncio.Future] = {}

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    @property
    def connected(self) -> bool:
        return self._ws is not None and self._receiver is not None and not self._receiver.done()

    async def connect(self) -> None:
        """
        Open the connection and start the receive loop.

        Raises:
            ServiceUnavailable: the server could not be reached
        """
        try:
            self._ws = await websockets.connect(self.url, ping_interval=30, ping_timeout=10)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise ServiceUnavailable(f"Cannot reach game service at {self.url}: {e}")
        self._receiver = asyncio.create_task(self._receive_loop())
        logger.info(f"Connected to game service at {self.url}")

    async def close(self) -> None:
        if self._receiver:
            self._receiver.cancel()
            try:
                await self._receiver
            except asyncio.CancelledError:
                pass
            self._receiver = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        self._fail_pending(ServiceUnavailable("Connection closed"))

    async def _receive_loop(self) -> None:
        try:
            async for raw in self._ws:
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning(f"Dropping malformed message: {raw!r}")
                    continue
                future = self._pending.pop(message.get("request_id"), None)
                if future is None:
                    logger.debug(f"Unsolicited message: {message.get('type')}")
                    continue
                if not future.done():
                    future.set_result(message)
        except ConnectionClosed as e:
            logger.warning(f"Game service connection closed: {e}")
        finally:
            self._fail_pending(ServiceUnavailable("Connection to game service lost"))

    def _fail_pending(self, error: ServiceError) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    async def _request(self, msg_type: MessageType, data: dict):
        if not self.connected:
            raise ServiceUnavailable("Not connected to game service")

        request_id = str(uuid.uuid4())
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._ws.send(json.dumps({
                "type": msg_type.value,
                "request_id": request_id,
                "data": data,
            }))
            response = await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            raise ServiceUnavailable(f"{msg_type.value} timed out after {self.request_timeout}s")
        except ConnectionClosed as e:
            raise ServiceUnavailable(f"Connection closed during {msg_type.value}: {e}")
        finally:
            self._pending.pop(request_id, None)

        body = response.get("data", {})
        if response.get("type") == MessageType.ERROR.value or not body.get("success", False):
            raise ServiceError(
                body.get("message", f"{msg_type.value} failed"),
                status=body.get("status"),
                data=body,
            )
        return body.get("result")

    # Reconciliation

    async def get_game(self, code: str) -> GameSnapshot:
        return GameSnapshot.from_dict(await self._request(MessageType.GET_GAME, {"code": code}))

    # Turn

    async def change_position(self, code: str, player_id: str, position: int,
                              rolled: int, is_double: bool) -> dict:
        return await self._request(MessageType.CHANGE_POSITION, {
            "code": code,
            "player_id": player_id,
            "position": position,
            "rolled": rolled,
            "is_double": is_double,
        })

    async def end_turn(self, code: str, player_id: str, timed_out: bool = False) -> dict:
        data = {"code": code, "player_id": player_id}
        if timed_out:
            data["timed_out"] = True
        return await self._request(MessageType.END_TURN, data)

    # Property

    async def _property_request(self, msg_type: MessageType, code: str, player_id: str,
                                property_id: int) -> dict:
        return await self._request(msg_type, {
            "code": code,
            "player_id": player_id,
            "property_id": property_id,
        })

    async def buy_property(self, code: str, player_id: str, property_id: int) -> dict:
        return await self._property_request(MessageType.BUY_PROPERTY, code, player_id, property_id)

    async def develop(self, code: str, player_id: str, property_id: int) -> dict:
        return await self._property_request(MessageType.DEVELOP, code, player_id, property_id)

    async def downgrade(self, code: str, player_id: str, property_id: int) -> dict:
        return await self._property_request(MessageType.DOWNGRADE, code, player_id, property_id)

    async def mortgage(self, code: str, player_id: str, property_id: int) -> dict:
        return await self._property_request(MessageType.MORTGAGE, code, player_id, property_id)

    async def unmortgage(self, code: str, player_id: str, property_id: int) -> dict:
        return await self._property_request(MessageType.UNMORTGAGE, code, player_id, property_id)

    async def sell_property(self, code: str, player_id: str, property_id: int) -> dict:
        return await self._property_request(MessageType.SELL_PROPERTY, code, player_id, property_id)

    async def transfer_property(self, code: str, player_id: str, target_id: str,
                                property_id: int) -> dict:
        return await self._request(MessageType.TRANSFER_PROPERTY, {
            "code": code,
            "player_id": player_id,
            "target_id": target_id,
            "property_id": property_id,
        })

    async def return_property(self, code: str, player_id: str, property_id: int) -> dict:
        return await self._property_request(MessageType.RETURN_PROPERTY, code, player_id, property_id)

    # Trade

    async def create_trade(self, code: str, offer: dict) -> TradeOffer:
        result = await self._request(MessageType.CREATE_TRADE, {"code": code, "offer": offer})
        return TradeOffer.from_dict(result)

    async def accept_trade(self, code: str, trade_id: str) -> TradeOffer:
        result = await self._request(MessageType.ACCEPT_TRADE, {"code": code, "trade_id": trade_id})
        return TradeOffer.from_dict(result)

    async def decline_trade(self, code: str, trade_id: str) -> TradeOffer:
        result = await self._request(MessageType.DECLINE_TRADE, {"code": code, "trade_id": trade_id})
        return TradeOffer.from_dict(result)

    async def counter_trade(self, code: str, trade_id: str, offer: dict) -> TradeOffer:
        result = await self._request(MessageType.COUNTER_TRADE, {
            "code": code,
            "trade_id": trade_id,
            "offer": offer,
        })
        return TradeOffer.from_dict(result)

    async def list_trades(self, code: str, player_id: str) -> List[TradeOffer]:
        result = await self._request(MessageType.LIST_TRADES, {"code": code, "player_id": player_id})
        return [TradeOffer.from_dict(t) for t in result]

    # Jail

    async def pay_to_leave_jail(self, code: str, player_id: str) -> dict:
        return await self._request(MessageType.PAY_TO_LEAVE_JAIL, {"code": code, "player_id": player_id})

    async def use_jail_card(self, code: str, player_id: str, card_type: JailCardType) -> dict:
        return await self._request(MessageType.USE_JAIL_CARD, {
            "code": code,
            "player_id": player_id,
            "card_type": JailCardType(card_type).value,
        })

    async def stay_in_jail(self, code: str, player_id: str) -> dict:
        return await self._request(MessageType.STAY_IN_JAIL, {"code": code, "player_id": player_id})

    # Governance

    async def record_timeout(self, code: str, reporter_id: str, target_id: str) -> dict:
        return await self._request(MessageType.RECORD_TIMEOUT, {
            "code": code,
            "reporter_id": reporter_id,
            "target_id": target_id,
        })

    async def vote_to_remove(self, code: str, voter_id: str, target_id: str) -> dict:
        return await self._request(MessageType.VOTE_TO_REMOVE, {
            "code": code,
            "voter_id": voter_id,
            "target_id": target_id,
        })

    async def vote_status(self, code: str, target_id: str) -> dict:
        return await self._request(MessageType.VOTE_STATUS, {"code": code, "target_id": target_id})

    async def vote_end_by_networth(self, code: str, voter_id: str) -> dict:
        return await self._request(MessageType.VOTE_END_BY_NETWORTH, {"code": code, "voter_id": voter_id})

    async def end_by_networth_status(self, code: str) -> dict:
        return await self._request(MessageType.END_BY_NETWORTH_STATUS, {"code": code})

    async def finish_by_time(self, code: str) -> dict:
        return await self._request(MessageType.FINISH_BY_TIME, {"code": code})

    async def leave_game(self, code: str, player_id: str, reason: str = "left") -> dict:
        return await self._request(MessageType.LEAVE_GAME, {
            "code": code,
            "player_id": player_id,
            "reason": reason,
        })
