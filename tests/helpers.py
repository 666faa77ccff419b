"""测试辅助：快速构造牌编号、假时钟、手动定时器、推送收集器"""

import random
from typing import Callable, List, Optional, Sequence

from landlord.config import GameConfig
from landlord.engine.card import Rank, sort_cards
from landlord.game.controller import MatchController
from landlord.game.game_state import GamePhase, Room
from landlord.game.seat import Seat


# ============================================================
#  牌编号
# ============================================================

def cid(rank: int, suit: int = 0) -> int:
    """点数 + 花色序号(0..3) → 牌编号"""
    if rank == Rank.SMALL_JOKER:
        return 53
    if rank == Rank.BIG_JOKER:
        return 54
    offset = {Rank.ACE: 1, Rank.TWO: 2}.get(rank, rank)
    return suit * 13 + offset


def cards_of_rank(rank: int, count: int) -> List[int]:
    """同点数的多张牌（自动分配不同花色）"""
    return [cid(rank, s) for s in range(count)]


def run_of(low: int, high: int, width: int = 1) -> List[int]:
    """low..high 每个点数 width 张"""
    cards: List[int] = []
    for r in range(low, high + 1):
        cards.extend(cards_of_rank(r, width))
    return cards


ROCKET = [53, 54]


# ============================================================
#  时钟与定时器
# ============================================================

class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """手动推进的定时器：advance() 时按到期顺序触发"""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: List[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.clock() + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        self.clock.advance(seconds)
        while True:
            due = [t for t in self.pending if t.when <= self.clock()]
            if not due:
                return
            timer = min(due, key=lambda t: t.when)
            timer.fired = True
            timer.callback()


class Outbox:
    """收集注册表推送的 sink"""

    def __init__(self):
        self.messages = []

    def __call__(self, connection_id: str, event: str, payload: dict) -> None:
        self.messages.append((connection_id, event, payload))

    def events(self, connection_id: Optional[str] = None) -> List[str]:
        return [e for c, e, _ in self.messages if connection_id is None or c == connection_id]

    def last(self, connection_id: str, event: str) -> dict:
        for c, e, p in reversed(self.messages):
            if c == connection_id and e == event:
                return p
        raise AssertionError(f"{connection_id} 没有收到 {event}")

    def clear(self) -> None:
        self.messages.clear()


# ============================================================
#  对局构造
# ============================================================

CONNECTIONS = ["conn-0", "conn-1", "conn-2"]


def make_match(
    room_id: str = "r1",
    seed: int = 7,
    config: Optional[GameConfig] = None,
    clock: Optional[FakeClock] = None,
) -> MatchController:
    return MatchController(
        Room(id=room_id),
        config=config or GameConfig(),
        clock=clock or FakeClock(),
        rng=random.Random(seed),
    )


def seat_three(match: MatchController) -> None:
    for conn in CONNECTIONS:
        match.join(conn)


def playing_match(
    hands: Sequence[Sequence[int]],
    landlord: int = 0,
    current: Optional[int] = None,
    clock: Optional[FakeClock] = None,
) -> MatchController:
    """直接构造一个出牌阶段的对局（指定手牌）"""
    match = make_match(clock=clock)
    room = match.room
    for i, conn in enumerate(CONNECTIONS):
        room.seats[i] = Seat(index=i, connection_id=conn)
    room.hands = [sort_cards(h) for h in hands]
    room.phase = GamePhase.PLAYING
    room.landlord_seat = landlord
    room.current_bid = 1
    room.current_seat = landlord if current is None else current
    return match
