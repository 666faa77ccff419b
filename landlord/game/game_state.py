"""房间状态 - 一个房间（一局对局）的权威状态"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from landlord.game.seat import Seat


SEAT_COUNT = 3


class GamePhase(str, Enum):
    """游戏阶段"""
    WAITING = "WAITING"         # 等待玩家加入
    BIDDING = "BIDDING"         # 叫地主
    PLAYING = "PLAYING"         # 出牌中
    ENDED = "ENDED"             # 已结束（房间随即销毁）


class DeadlineKind(str, Enum):
    BID = "BID"
    PLAY = "PLAY"


@dataclass(frozen=True)
class Deadline:
    """房间当前唯一有效的倒计时"""
    kind: DeadlineKind
    seat: int
    expires_at: float                # 单调时钟时间
    serial: int                      # 每次重新计时递增，用于识别过期的定时器


@dataclass
class Room:
    """一个房间的完整状态"""
    id: str
    seats: Dict[int, Seat] = field(default_factory=dict)
    hands: List[List[int]] = field(default_factory=lambda: [[] for _ in range(SEAT_COUNT)])
    phase: GamePhase = GamePhase.WAITING
    bottom_cards: List[int] = field(default_factory=list)

    # 叫地主相关
    bidding_seat: int = 0            # 当前叫分座位
    first_bidder: int = 0            # 本次发牌的首叫座位
    current_bid: int = 0             # 0..3
    provisional_landlord: Optional[int] = None
    bid_turns: int = 0               # 本次发牌已表态次数
    redeal_count: int = 0            # 无人叫分导致的重新发牌次数
    landlord_seat: Optional[int] = None

    # 出牌相关
    current_seat: int = 0
    last_play: Tuple[int, ...] = ()  # 空 = 新一轮自由出牌
    last_play_owner: Optional[int] = None
    pass_count: int = 0              # 连续不出次数
    bomb_count: int = 0              # 本局炸弹/火箭数
    play_counts: List[int] = field(default_factory=lambda: [0] * SEAT_COUNT)
    landlord_has_played: bool = False

    # 结算相关
    winner: Optional[int] = None

    # 倒计时
    deadline: Optional[Deadline] = None
    deadline_serial: int = 0

    @property
    def is_full(self) -> bool:
        return len(self.seats) >= SEAT_COUNT

    @property
    def is_empty(self) -> bool:
        return not self.seats

    def seat_of(self, connection_id: str) -> Optional[int]:
        for seat in self.seats.values():
            if seat.connection_id == connection_id:
                return seat.index
        return None

    def free_seat(self) -> Optional[int]:
        for index in range(SEAT_COUNT):
            if index not in self.seats:
                return index
        return None
