"""房间注册表 - 持有所有进行中的房间、各房间唯一的定时器以及连接到房间的索引

由传输层创建并以引用传入每个指令处理函数，close() 时统一销毁。
每条指令（或一次定时器到期）完整执行完：校验、修改状态、同步定时器、投递推送，
之后才会处理下一条。
"""

import asyncio
import functools
import logging
import random
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from landlord.ai.advisor import HandAdvisor
from landlord.config import GameConfig
from landlord.game.controller import MatchController
from landlord.game.errors import ErrorCode, GameError
from landlord.game.game_state import Room

logger = logging.getLogger(__name__)

# 推送出口：(connection_id, event, payload)
Sink = Callable[[str, str, dict], None]

ROOM_ID_LENGTH = 6


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """定时器接口"""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """基于事件循环 call_later 的定时器"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class RoomRegistry:
    """房间注册表"""

    def __init__(
        self,
        scheduler: Scheduler,
        sink: Sink,
        config: Optional[GameConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        advisor: Optional[HandAdvisor] = None,
    ):
        self._scheduler = scheduler
        self._sink = sink
        self._config = config or GameConfig()
        self._clock = clock
        self._rng = rng or random.Random()
        self._advisor = advisor or HandAdvisor()

        self._rooms: Dict[str, MatchController] = {}
        self._timers: Dict[str, Tuple[int, TimerHandle]] = {}
        self._connections: Dict[str, str] = {}   # connection_id -> room_id
        self._closed = False

    # ============================================================
    #  查询
    # ============================================================

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def get_room(self, room_id: str) -> Optional[Room]:
        match = self._rooms.get(room_id)
        return match.room if match else None

    def room_of(self, connection_id: str) -> Optional[str]:
        return self._connections.get(connection_id)

    def has_timer(self, room_id: str) -> bool:
        return room_id in self._timers

    # ============================================================
    #  指令
    # ============================================================

    def join(self, connection_id: str, room_id: Optional[str] = None) -> Dict[str, Any]:
        """入座；room_id 为空时新建房间"""
        self._ensure_open()
        if connection_id in self._connections:
            raise GameError(
                ErrorCode.ALREADY_SEATED,
                f"连接已在房间 {self._connections[connection_id]} 中",
            )

        room_id = room_id or self._new_room_id()
        match = self._rooms.get(room_id)
        if match is None:
            match = self._create_room(room_id)

        seat = self._run(match, lambda: match.join(connection_id))
        self._connections[connection_id] = room_id
        return {"ok": True, "roomId": room_id, "seat": seat}

    def bid(self, connection_id: str, room_id: str, amount: int) -> Dict[str, Any]:
        match, seat = self._locate(connection_id, room_id)
        self._run(match, lambda: match.bid(seat, amount))
        return {"ok": True}

    def play_cards(self, connection_id: str, room_id: str, cards: List[int]) -> Dict[str, Any]:
        match, seat = self._locate(connection_id, room_id)
        hand = self._run(match, lambda: match.play(seat, cards))
        return {"ok": True, "type": hand.type.value}

    def pass_turn(self, connection_id: str, room_id: str) -> Dict[str, Any]:
        match, seat = self._locate(connection_id, room_id)
        self._run(match, lambda: match.pass_turn(seat))
        return {"ok": True}

    def disconnect(self, connection_id: str) -> None:
        """连接断开：从所在房间移除座位，房间空了就销毁"""
        room_id = self._connections.pop(connection_id, None)
        match = self._rooms.get(room_id) if room_id else None
        if match is None:
            return
        seat = match.room.seat_of(connection_id)
        if seat is None:
            return
        try:
            self._run(match, lambda: match.disconnect(seat))
        except GameError as exc:
            logger.warning("连接 %s 离开房间 %s 失败: %s", connection_id, room_id, exc)

    def fire_deadline(self, room_id: str, serial: int) -> None:
        """定时器到期回调：只带 (room_id, serial)，由房间按当前状态判断是否仍然有效"""
        timer = self._timers.get(room_id)
        if timer is not None and timer[0] == serial:
            del self._timers[room_id]

        match = self._rooms.get(room_id)
        if match is None:
            return
        try:
            self._run(match, lambda: match.on_deadline(serial))
        except GameError as exc:
            logger.warning("房间 %s 超时处理失败: %s", room_id, exc)

    def close(self) -> None:
        """销毁注册表：取消全部定时器并丢弃全部房间"""
        for _, handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._rooms.clear()
        self._connections.clear()
        self._closed = True
        logger.info("房间注册表已关闭")

    # ============================================================
    #  内部
    # ============================================================

    def _ensure_open(self) -> None:
        if self._closed:
            raise GameError(ErrorCode.INTERNAL_ERROR, "服务正在关闭")

    def _new_room_id(self) -> str:
        while True:
            room_id = uuid.uuid4().hex[:ROOM_ID_LENGTH]
            if room_id not in self._rooms:
                return room_id

    def _create_room(self, room_id: str) -> MatchController:
        match = MatchController(
            Room(id=room_id),
            config=self._config,
            clock=self._clock,
            rng=self._rng,
            advisor=self._advisor,
        )
        self._rooms[room_id] = match
        logger.info("创建房间 %s", room_id)
        return match

    def _locate(self, connection_id: str, room_id: str) -> Tuple[MatchController, int]:
        self._ensure_open()
        match = self._rooms.get(room_id)
        if match is None:
            raise GameError(ErrorCode.ROOM_NOT_FOUND, f"房间 {room_id} 不存在")
        seat = match.room.seat_of(connection_id)
        if seat is None:
            raise GameError(ErrorCode.NOT_SEATED, f"连接不在房间 {room_id} 中")
        return match, seat

    def _run(self, match: MatchController, action: Callable[[], Any]) -> Any:
        """
        执行一条指令。
        GameError 原样抛出（此时状态未被修改）；其他异常只影响本房间：
        记录日志、销毁该房间并以 INTERNAL_ERROR 拒绝。
        """
        room_id = match.room.id
        try:
            result = action()
        except GameError:
            match.drain()
            if match.room.is_empty:
                self._destroy(room_id)
            raise
        except Exception:
            logger.exception("房间 %s 处理指令时发生内部错误，房间已销毁", room_id)
            self._destroy(room_id)
            raise GameError(ErrorCode.INTERNAL_ERROR, "服务器内部错误") from None

        self._sync_timer(match)
        self._deliver(match)
        if match.finished or match.room.is_empty:
            self._destroy(room_id)
        return result

    def _sync_timer(self, match: MatchController) -> None:
        """让房间的定时器与其当前唯一的 deadline 保持一致"""
        room = match.room
        deadline = room.deadline
        current = self._timers.get(room.id)

        if current is not None and deadline is not None and current[0] == deadline.serial:
            return
        if current is not None:
            current[1].cancel()
            del self._timers[room.id]
        if deadline is None:
            return

        delay = max(0.0, deadline.expires_at - self._clock())
        handle = self._scheduler.call_later(
            delay, functools.partial(self.fire_deadline, room.id, deadline.serial)
        )
        self._timers[room.id] = (deadline.serial, handle)

    def _deliver(self, match: MatchController) -> None:
        for note in match.drain():
            try:
                self._sink(note.connection_id, note.event, note.payload)
            except Exception:
                logger.exception("投递 %s 到连接 %s 失败", note.event, note.connection_id)

    def _destroy(self, room_id: str) -> None:
        match = self._rooms.pop(room_id, None)
        timer = self._timers.pop(room_id, None)
        if timer is not None:
            timer[1].cancel()
        for connection_id in [c for c, r in self._connections.items() if r == room_id]:
            del self._connections[connection_id]
        if match is not None:
            logger.info("销毁房间 %s（阶段 %s）", room_id, match.room.phase.value)
