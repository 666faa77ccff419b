"""牌型检测器 - 识别一组牌的牌型并比较两手牌的大小"""

from typing import Iterable, List, Optional
from collections import Counter

from .card import Rank, card_rank, SMALL_JOKER_ID, BIG_JOKER_ID
from .hand_type import (
    HandType, PlayedHand, ChainHand, AirplaneHand, invalid_hand,
)


# 顺子/连对中不允许出现的点数（2 和大小王）
_CHAIN_LIMIT = Rank.TWO


def detect_hand(cards: Iterable[int]) -> PlayedHand:
    """
    识别一组牌的牌型。
    总是返回 PlayedHand；无法识别时返回 INVALID（power=0）。
    """
    cards = tuple(sorted(cards))
    if not cards:
        return invalid_hand()

    n = len(cards)
    rank_counts = Counter(card_rank(c) for c in cards)

    # 按检测优先级依次尝试
    # 火箭 > 炸弹 > 单张/对子/三条 > 三带 > 顺子 > 连对 > 四带二 > 飞机
    result = (
        _detect_rocket(cards, n, rank_counts)
        or _detect_bomb(cards, n, rank_counts)
        or _detect_same_rank(cards, n, rank_counts)
        or _detect_triple_with_kicker(cards, n, rank_counts)
        or _detect_straight(cards, n, rank_counts)
        or _detect_straight_pair(cards, n, rank_counts)
        or _detect_four_with_two(cards, n, rank_counts)
        or _detect_airplane(cards, n, rank_counts)
    )
    return result or invalid_hand(cards)


# ============================================================
#  辅助函数
# ============================================================

def _groups_by_count(rank_counts: Counter, count: int) -> List[Rank]:
    """返回出现恰好 count 次的所有点数，按点数排序"""
    return sorted(r for r, c in rank_counts.items() if c == count)


def _is_consecutive(ranks: List[Rank]) -> bool:
    """已排序的 ranks 是否严格连续且不含 2 和大小王"""
    if not ranks or ranks[-1] >= _CHAIN_LIMIT:
        return False
    return all(ranks[i + 1] - ranks[i] == 1 for i in range(len(ranks) - 1))


def _longest_triple_run(rc: Counter) -> List[Rank]:
    """
    找出所有 ≥3 次的点数中最长的连续序列（2 可以接在 A 后面，王不可能有三张）。
    长度相同时取点数较小的一段。
    """
    triple_ranks = sorted(r for r, c in rc.items() if c >= 3)
    if not triple_ranks:
        return []

    best: List[Rank] = []
    current = [triple_ranks[0]]
    for r in triple_ranks[1:]:
        if r - current[-1] == 1:
            current.append(r)
        else:
            if len(current) > len(best):
                best = current
            current = [r]
    if len(current) > len(best):
        best = current
    return best


# ============================================================
#  基础牌型检测
# ============================================================

def _detect_rocket(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """火箭：大王 + 小王"""
    if n == 2 and SMALL_JOKER_ID in cards and BIG_JOKER_ID in cards:
        return PlayedHand(HandType.ROCKET, cards, int(Rank.BIG_JOKER))
    return None


def _detect_bomb(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """炸弹：四张相同点数"""
    if n == 4 and len(rc) == 1:
        return PlayedHand(HandType.BOMB, cards, int(next(iter(rc))))
    return None


_SAME_RANK_TYPES = {1: HandType.SINGLE, 2: HandType.PAIR, 3: HandType.TRIPLE}


def _detect_same_rank(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """单张 / 对子 / 三条"""
    if n in _SAME_RANK_TYPES and len(rc) == 1:
        return PlayedHand(_SAME_RANK_TYPES[n], cards, int(next(iter(rc))))
    return None


# ============================================================
#  带牌类检测
# ============================================================

def _detect_triple_with_kicker(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """三带一 (4张) / 三带一对 (5张)"""
    if n not in (4, 5) or len(rc) != 2:
        return None
    triples = _groups_by_count(rc, 3)
    if len(triples) != 1:
        return None
    hand_type = HandType.TRIPLE_WITH_SINGLE if n == 4 else HandType.TRIPLE_WITH_PAIR
    return PlayedHand(hand_type, cards, int(triples[0]))


def _detect_four_with_two(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """四带二单 (6张，两张单牌可以同点数) / 四带二对 (8张，两个不同对子)"""
    fours = _groups_by_count(rc, 4)
    if len(fours) != 1:
        return None
    if n == 6:
        return PlayedHand(HandType.FOUR_WITH_TWO_SINGLES, cards, int(fours[0]))
    if n == 8 and len(_groups_by_count(rc, 2)) == 2:
        return PlayedHand(HandType.FOUR_WITH_TWO_PAIRS, cards, int(fours[0]))
    return None


# ============================================================
#  顺子类检测
# ============================================================

def _detect_straight(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """顺子：≥5张连续单牌，不含2和王"""
    if n < 5 or len(rc) != n:
        return None
    ranks = sorted(rc)
    if _is_consecutive(ranks):
        return ChainHand(HandType.STRAIGHT, cards, int(ranks[-1]), chain_length=n)
    return None


def _detect_straight_pair(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """连对：≥3对连续对子，不含2和王"""
    if n < 6 or n % 2 != 0:
        return None
    if any(c != 2 for c in rc.values()):
        return None
    ranks = sorted(rc)
    if _is_consecutive(ranks):
        return ChainHand(HandType.STRAIGHT_PAIR, cards, int(ranks[-1]), chain_length=n // 2)
    return None


# ============================================================
#  飞机类检测
# ============================================================

def _detect_airplane(cards, n: int, rc: Counter) -> Optional[PlayedHand]:
    """
    飞机：最长的连续三条（≥2组）
      3×组数  飞机不带
      4×组数  飞机带单（剩余为互不相同的单牌）
      5×组数  飞机带对（剩余恰好为组数个不同对子）
    """
    seq = _longest_triple_run(rc)
    run = len(seq)
    if run < 2:
        return None

    remaining = Counter(rc)
    for r in seq:
        remaining[r] -= 3
    remaining = +remaining  # 去掉计数为 0 的点数

    power = int(seq[-1])
    if n == 3 * run and not remaining:
        return AirplaneHand(HandType.AIRPLANE, cards, power, run_length=run)
    if n == 4 * run and all(c == 1 for c in remaining.values()):
        return AirplaneHand(HandType.AIRPLANE_WITH_SINGLES, cards, power, run_length=run)
    if n == 5 * run and len(remaining) == run and all(c == 2 for c in remaining.values()):
        return AirplaneHand(HandType.AIRPLANE_WITH_PAIRS, cards, power, run_length=run)
    return None


# ============================================================
#  牌型比较
# ============================================================

def can_beat(current: PlayedHand, previous: Optional[PlayedHand]) -> bool:
    """
    判断 current 能否压过 previous（previous 为 None 表示自由出牌）。
    规则：
    1. 非法牌型永远不能出
    2. 火箭压一切
    3. 炸弹压非炸弹/非火箭，炸弹之间比点数
    4. 同类型同结构长度，比主牌点数（相等不算大）
    """
    if not current.is_valid:
        return False
    if previous is None:
        return True

    # 火箭压一切
    if current.type == HandType.ROCKET:
        return True
    if previous.type == HandType.ROCKET:
        return False

    # 炸弹逻辑
    if current.type == HandType.BOMB and previous.type != HandType.BOMB:
        return True
    if previous.type == HandType.BOMB and current.type != HandType.BOMB:
        return False

    # 同类型同长度比较
    if current.type != previous.type:
        return False
    if current.structure != previous.structure:
        return False
    return current.power > previous.power
