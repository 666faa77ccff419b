"""牌的定义 - 斗地主54张扑克牌的编号与点数模型

牌用整数编号 1..54 表示：
  1..52 按 (id-1)//13 取花色，(id-1)%13 取点数（顺序 A,2,3,...,K）
  53 = 小王，54 = 大王
"""

from enum import IntEnum, Enum
from typing import Iterable, List, Optional, Tuple
import random


class Rank(IntEnum):
    """点数枚举（数值越大牌越大）"""
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14
    TWO = 15
    SMALL_JOKER = 16
    BIG_JOKER = 17


class Suit(str, Enum):
    """花色枚举"""
    CLUB = "♣"
    HEART = "♥"
    SPADE = "♠"
    DIAMOND = "♦"
    JOKER = "🃏"


SMALL_JOKER_ID = 53
BIG_JOKER_ID = 54
DECK_SIZE = 54
HAND_SIZE = 17

# 编号内的点数顺序：A,2,3,...,K
_RANK_ORDER = (
    Rank.ACE, Rank.TWO, Rank.THREE, Rank.FOUR, Rank.FIVE, Rank.SIX, Rank.SEVEN,
    Rank.EIGHT, Rank.NINE, Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING,
)
_SUIT_ORDER = (Suit.CLUB, Suit.HEART, Suit.SPADE, Suit.DIAMOND)

# 点数显示映射
RANK_DISPLAY = {
    Rank.THREE: "3", Rank.FOUR: "4", Rank.FIVE: "5",
    Rank.SIX: "6", Rank.SEVEN: "7", Rank.EIGHT: "8",
    Rank.NINE: "9", Rank.TEN: "10", Rank.JACK: "J",
    Rank.QUEEN: "Q", Rank.KING: "K", Rank.ACE: "A",
    Rank.TWO: "2", Rank.SMALL_JOKER: "小王", Rank.BIG_JOKER: "大王",
}


def is_card_id(card_id: object) -> bool:
    """是否为合法的牌编号（排除 bool）"""
    return isinstance(card_id, int) and not isinstance(card_id, bool) and 1 <= card_id <= DECK_SIZE


def card_rank(card_id: int) -> Rank:
    """编号 → 可比较的点数"""
    if card_id == SMALL_JOKER_ID:
        return Rank.SMALL_JOKER
    if card_id == BIG_JOKER_ID:
        return Rank.BIG_JOKER
    if not is_card_id(card_id):
        raise ValueError(f"非法牌编号: {card_id!r}")
    return _RANK_ORDER[(card_id - 1) % 13]


def card_suit(card_id: int) -> Suit:
    """编号 → 花色"""
    if card_id in (SMALL_JOKER_ID, BIG_JOKER_ID):
        return Suit.JOKER
    if not is_card_id(card_id):
        raise ValueError(f"非法牌编号: {card_id!r}")
    return _SUIT_ORDER[(card_id - 1) // 13]


def card_display(card_id: int) -> str:
    rank = card_rank(card_id)
    if rank in (Rank.SMALL_JOKER, Rank.BIG_JOKER):
        return RANK_DISPLAY[rank]
    return f"{card_suit(card_id).value}{RANK_DISPLAY[rank]}"


def cards_display(cards: Iterable[int]) -> str:
    return " ".join(card_display(c) for c in cards)


def create_deck() -> List[int]:
    """创建一副54张标准扑克牌"""
    deck = list(range(1, DECK_SIZE + 1))
    assert len(deck) == DECK_SIZE, f"牌数错误: {len(deck)}"
    return deck


def sort_cards(cards: Iterable[int]) -> List[int]:
    """按点数排序（从小到大），同点数按编号"""
    return sorted(cards, key=lambda c: (card_rank(c), c))


def deal(
    deck: List[int], rng: Optional[random.Random] = None
) -> Tuple[List[List[int]], List[int]]:
    """洗牌并发牌：轮流发前51张给三家，剩余3张为底牌。返回 (三家手牌, 底牌)"""
    shuffled = list(deck)
    (rng or random).shuffle(shuffled)

    hands: List[List[int]] = [[], [], []]
    for i in range(HAND_SIZE * 3):
        hands[i % 3].append(shuffled[i])
    bottom = shuffled[HAND_SIZE * 3:]

    return [sort_cards(h) for h in hands], sort_cards(bottom)
