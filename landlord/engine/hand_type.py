"""牌型定义 - 斗地主合法牌型及其结构化表示"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional, Tuple

from .card import cards_display


class HandType(str, Enum):
    """牌型枚举"""
    INVALID = "INVALID"                         # 非法
    SINGLE = "SINGLE"                           # 单张
    PAIR = "PAIR"                               # 对子
    TRIPLE = "TRIPLE"                           # 三条
    TRIPLE_WITH_SINGLE = "TRIPLE_WITH_SINGLE"   # 三带一
    TRIPLE_WITH_PAIR = "TRIPLE_WITH_PAIR"       # 三带一对
    STRAIGHT = "STRAIGHT"                       # 顺子 (≥5张)
    STRAIGHT_PAIR = "STRAIGHT_PAIR"             # 连对 (≥3对)
    AIRPLANE = "AIRPLANE"                       # 飞机不带
    AIRPLANE_WITH_SINGLES = "AIRPLANE_WITH_SINGLES"  # 飞机带单
    AIRPLANE_WITH_PAIRS = "AIRPLANE_WITH_PAIRS"      # 飞机带对
    FOUR_WITH_TWO_SINGLES = "FOUR_WITH_TWO_SINGLES"  # 四带二单
    FOUR_WITH_TWO_PAIRS = "FOUR_WITH_TWO_PAIRS"      # 四带二对
    BOMB = "BOMB"                               # 炸弹
    ROCKET = "ROCKET"                           # 火箭(王炸)


AIRPLANE_TYPES = frozenset({
    HandType.AIRPLANE, HandType.AIRPLANE_WITH_SINGLES, HandType.AIRPLANE_WITH_PAIRS,
})


@dataclass(frozen=True)
class PlayedHand:
    """一手出牌的结构化表示（无结构长度的牌型）"""
    type: HandType
    cards: Tuple[int, ...]
    power: int              # 主牌点数（用于比较大小），非法牌型为 0

    @property
    def is_valid(self) -> bool:
        return self.type != HandType.INVALID

    @property
    def is_bomb_like(self) -> bool:
        return self.type in (HandType.BOMB, HandType.ROCKET)

    @property
    def structure(self) -> Optional[int]:
        """结构长度：顺子/连对为连续组数，飞机为三条组数，其余为 None"""
        return None

    def __repr__(self) -> str:
        return f"[{self.type.value}] {cards_display(self.cards)}"


@dataclass(frozen=True, repr=False)
class ChainHand(PlayedHand):
    """顺子、连对"""
    chain_length: int

    @property
    def structure(self) -> Optional[int]:
        return self.chain_length


@dataclass(frozen=True, repr=False)
class AirplaneHand(PlayedHand):
    """飞机不带、飞机带单、飞机带对"""
    run_length: int

    @property
    def structure(self) -> Optional[int]:
        return self.run_length


def invalid_hand(cards: Tuple[int, ...] = ()) -> PlayedHand:
    return PlayedHand(HandType.INVALID, tuple(cards), 0)
