"""WebSocket 后端服务 - 接收客户端指令交给房间注册表，并把个性化快照推送给各连接"""

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from landlord.config import ServerConfig
from landlord.game.errors import ErrorCode, GameError
from landlord.game.registry import AsyncioScheduler, RoomRegistry

logger = logging.getLogger(__name__)


# ============================================================
#  连接池
# ============================================================

class ConnectionHub:
    """每个连接一个发送队列，由独立的写协程按顺序发送，推送不阻塞指令处理"""

    def __init__(self) -> None:
        self._queues: Dict[str, asyncio.Queue] = {}

    def open(self, connection_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[connection_id] = queue
        return queue

    def close(self, connection_id: str) -> None:
        self._queues.pop(connection_id, None)

    def send(self, connection_id: str, message: dict) -> None:
        queue = self._queues.get(connection_id)
        if queue is not None:
            queue.put_nowait(message)

    def notify(self, connection_id: str, event: str, payload: dict) -> None:
        """房间注册表的推送出口"""
        self.send(connection_id, {"type": event, "data": payload})


async def _writer(ws: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        try:
            await ws.send_text(json.dumps(message, ensure_ascii=False))
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("连接已关闭，停止发送")
            return


# ============================================================
#  指令解析
# ============================================================

def _room_id(msg: dict, required: bool = True) -> Optional[str]:
    room_id = msg.get("roomId")
    if room_id is None or room_id == "":
        if required:
            raise GameError(ErrorCode.BAD_REQUEST, "缺少 roomId")
        return None
    if not isinstance(room_id, str):
        raise GameError(ErrorCode.BAD_REQUEST, "roomId 必须是字符串")
    return room_id


def _join(registry: RoomRegistry, connection_id: str, msg: dict) -> dict:
    return registry.join(connection_id, _room_id(msg, required=False))


def _bid(registry: RoomRegistry, connection_id: str, msg: dict) -> dict:
    if "amount" not in msg:
        raise GameError(ErrorCode.BAD_REQUEST, "缺少 amount")
    return registry.bid(connection_id, _room_id(msg), msg["amount"])


def _play_cards(registry: RoomRegistry, connection_id: str, msg: dict) -> dict:
    cards = msg.get("cards")
    if not isinstance(cards, list):
        raise GameError(ErrorCode.BAD_REQUEST, "cards 必须是牌编号列表")
    return registry.play_cards(connection_id, _room_id(msg), cards)


def _pass(registry: RoomRegistry, connection_id: str, msg: dict) -> dict:
    return registry.pass_turn(connection_id, _room_id(msg))


_HANDLERS: Dict[str, Callable[[RoomRegistry, str, dict], dict]] = {
    "join": _join,
    "bid": _bid,
    "playCards": _play_cards,
    "pass": _pass,
}


def handle_message(registry: RoomRegistry, connection_id: str, text: str) -> Dict[str, Any]:
    """处理一条客户端消息，返回要回给该连接的 ack"""
    action = None
    request_id = None
    try:
        msg = json.loads(text)
        if not isinstance(msg, dict):
            raise GameError(ErrorCode.BAD_REQUEST, "消息必须是 JSON 对象")
        action = msg.get("action")
        request_id = msg.get("requestId")
        handler = _HANDLERS.get(action) if isinstance(action, str) else None
        if handler is None:
            raise GameError(ErrorCode.BAD_REQUEST, f"未知指令: {action!r}")
        result = handler(registry, connection_id, msg)
    except json.JSONDecodeError:
        result = GameError(ErrorCode.BAD_REQUEST, "消息不是合法 JSON").to_dict()
    except GameError as exc:
        logger.warning("连接 %s 指令 %s 被拒绝: %s", connection_id, action, exc)
        result = exc.to_dict()
    return {"type": "ack", "action": action, "requestId": request_id, **result}


# ============================================================
#  FastAPI 应用
# ============================================================

def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """创建应用；房间注册表随应用创建，随应用关闭销毁"""
    config = config or ServerConfig()
    hub = ConnectionHub()
    registry = RoomRegistry(
        scheduler=AsyncioScheduler(),
        sink=hub.notify,
        config=config.game,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        registry.close()

    app = FastAPI(title="斗地主联机对局", lifespan=lifespan)
    app.state.config = config
    app.state.hub = hub
    app.state.registry = registry

    @app.get("/")
    async def index():
        return PlainTextResponse("OK")

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "rooms": registry.room_count}

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        """WebSocket 端点：每条消息是一条指令，指令结果以 ack 返回"""
        await ws.accept()
        connection_id = uuid.uuid4().hex
        queue = hub.open(connection_id)
        writer = asyncio.create_task(_writer(ws, queue))
        logger.debug("连接 %s 已建立", connection_id)
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                # 二进制帧按非法 JSON 处理
                text = message.get("text") or ""
                hub.send(connection_id, handle_message(registry, connection_id, text))
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("连接 %s 断开", connection_id)
        finally:
            registry.disconnect(connection_id)
            hub.close(connection_id)
            writer.cancel()

    return app
