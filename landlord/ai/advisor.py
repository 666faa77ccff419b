"""出牌提示 - 判断手牌中是否有能压过上家的组合，并给出一手建议

只作为提示推送给当前出牌的玩家，不参与裁决：
玩家真正提交的每一手牌都会由对局控制器重新经过 detect_hand / can_beat 校验。
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from landlord.engine.card import Rank, card_rank, sort_cards
from landlord.engine.hand_type import AIRPLANE_TYPES, HandType, PlayedHand
from landlord.engine.hand_detector import detect_hand, can_beat


@dataclass(frozen=True)
class Advice:
    """提示结果"""
    can_beat: bool
    cards: Optional[Tuple[int, ...]] = None


def _group_by_rank(hand: Iterable[int]) -> Dict[Rank, List[int]]:
    groups: Dict[Rank, List[int]] = {}
    for c in sort_cards(hand):
        groups.setdefault(card_rank(c), []).append(c)
    return groups


class HandAdvisor:
    """基于简单规则的出牌提示"""

    # 顺子/连对不允许的点数（飞机可以带 2）
    _CHAIN_FORBIDDEN = {Rank.TWO, Rank.SMALL_JOKER, Rank.BIG_JOKER}

    def advise(self, hand: Iterable[int], reference: Optional[PlayedHand]) -> Advice:
        """
        给出提示。
        reference 为 None 表示自由出牌。
        """
        hand = sort_cards(hand)
        if not hand:
            return Advice(can_beat=False)

        if reference is None or not reference.is_valid:
            return Advice(can_beat=True, cards=tuple(self._free_play(hand)))

        if not self.can_hand_beat(hand, reference):
            return Advice(can_beat=False)
        suggestion = self._follow_play(hand, reference)
        return Advice(can_beat=True, cards=tuple(suggestion) if suggestion else None)

    def can_hand_beat(self, hand: Iterable[int], reference: Optional[PlayedHand]) -> bool:
        """手牌中是否存在能压过 reference 的组合"""
        hand = list(hand)
        if not hand:
            return False
        if reference is None or not reference.is_valid:
            return True
        if reference.type == HandType.ROCKET:
            return False  # 火箭无敌

        groups = _group_by_rank(hand)
        # 火箭压一切
        if Rank.SMALL_JOKER in groups and Rank.BIG_JOKER in groups:
            return True
        # 任意炸弹压非炸弹
        if reference.type != HandType.BOMB and any(len(g) == 4 for g in groups.values()):
            return True

        return self._follow_play(hand, reference) is not None

    # ============================================================
    #  自由出牌
    # ============================================================

    def _free_play(self, hand: List[int]) -> List[int]:
        """自由出牌：能一手出完就全出，否则出最小点数的一组（保留炸弹）"""
        if detect_hand(hand).is_valid:
            return list(hand)
        groups = _group_by_rank(hand)
        lowest = min(groups)
        cards = groups[lowest]
        return cards[:1] if len(cards) == 4 else list(cards)

    # ============================================================
    #  跟牌
    # ============================================================

    def _follow_play(self, hand: List[int], last: PlayedHand) -> Optional[List[int]]:
        """跟牌：优先同牌型最小的组合，其次最小炸弹，最后火箭"""
        groups = _group_by_rank(hand)
        candidate = self._same_type(groups, last)
        if candidate is not None:
            checked = self._checked(candidate, last)
            if checked is not None:
                return checked

        for rank in sorted(groups):
            if len(groups[rank]) == 4:
                checked = self._checked(groups[rank], last)
                if checked is not None:
                    return checked

        if Rank.SMALL_JOKER in groups and Rank.BIG_JOKER in groups:
            return self._checked(groups[Rank.SMALL_JOKER] + groups[Rank.BIG_JOKER], last)
        return None

    @staticmethod
    def _checked(cards: List[int], last: PlayedHand) -> Optional[List[int]]:
        """候选组合必须经过牌型识别和比较才算数"""
        if can_beat(detect_hand(cards), last):
            return sort_cards(cards)
        return None

    def _same_type(self, groups: Dict[Rank, List[int]], last: PlayedHand) -> Optional[List[int]]:
        t = last.type
        if t == HandType.SINGLE:
            return self._beat_group(groups, last.power, 1)
        if t == HandType.PAIR:
            return self._beat_group(groups, last.power, 2)
        if t == HandType.TRIPLE:
            return self._beat_group(groups, last.power, 3)
        if t == HandType.TRIPLE_WITH_SINGLE:
            return self._beat_with_kickers(groups, last.power, 3, kicker_size=1, kicker_count=1)
        if t == HandType.TRIPLE_WITH_PAIR:
            return self._beat_with_kickers(groups, last.power, 3, kicker_size=2, kicker_count=1)
        if t == HandType.FOUR_WITH_TWO_SINGLES:
            return self._beat_with_kickers(
                groups, last.power, 4, kicker_size=1, kicker_count=2, distinct=False
            )
        if t == HandType.FOUR_WITH_TWO_PAIRS:
            return self._beat_with_kickers(groups, last.power, 4, kicker_size=2, kicker_count=2)
        if t == HandType.STRAIGHT:
            return self._beat_chain(groups, last, width=1)
        if t == HandType.STRAIGHT_PAIR:
            return self._beat_chain(groups, last, width=2)
        if t in AIRPLANE_TYPES:
            return self._beat_airplane(groups, last)
        # 炸弹只能由更大的炸弹或火箭压，交给后续兜底
        return None

    # ============================================================
    #  跟牌辅助方法
    # ============================================================

    @staticmethod
    def _beat_group(groups: Dict[Rank, List[int]], target: int, size: int) -> Optional[List[int]]:
        """找比 target 大的最小单张/对子/三条（不拆炸弹）"""
        for r in sorted(groups):
            if r > target and size <= len(groups[r]) < 4:
                return groups[r][:size]
        return None

    def _beat_with_kickers(
        self,
        groups: Dict[Rank, List[int]],
        target: int,
        main_size: int,
        kicker_size: int,
        kicker_count: int,
        distinct: bool = True,
    ) -> Optional[List[int]]:
        """三带一/三带对/四带二：主牌比 target 大，带牌取最小的"""
        for r in sorted(groups):
            if r <= target or len(groups[r]) < main_size:
                continue
            if main_size == 3 and len(groups[r]) == 4:
                continue
            kickers = self._find_kickers(groups, {r}, kicker_size, kicker_count, distinct)
            if kickers is not None:
                return groups[r][:main_size] + kickers
        return None

    def _beat_chain(
        self, groups: Dict[Rank, List[int]], last: PlayedHand, width: int
    ) -> Optional[List[int]]:
        """跟顺子/连对：同长度、最大点数更大"""
        avail = sorted(
            r for r in groups
            if r not in self._CHAIN_FORBIDDEN and width <= len(groups[r]) < 4
        )
        seq = self._find_chain(avail, last.structure, last.power)
        if seq is None:
            return None
        cards: List[int] = []
        for r in seq:
            cards.extend(groups[r][:width])
        return cards

    def _beat_airplane(self, groups: Dict[Rank, List[int]], last: PlayedHand) -> Optional[List[int]]:
        """跟飞机（含不带/带单/带对）：找同长度、点数更大的连续三条，再按原牌型带牌"""
        length = last.structure
        avail = sorted(r for r in groups if len(groups[r]) == 3)
        seq = self._find_chain(avail, length, last.power)
        if seq is None:
            return None
        cards: List[int] = []
        for r in seq:
            cards.extend(groups[r][:3])

        if last.type == HandType.AIRPLANE_WITH_SINGLES:
            kickers = self._find_kickers(groups, set(seq), 1, length)
        elif last.type == HandType.AIRPLANE_WITH_PAIRS:
            kickers = self._find_kickers(groups, set(seq), 2, length)
        else:
            kickers = []
        if kickers is None:
            return None
        return cards + kickers

    # ============================================================
    #  链式查找辅助
    # ============================================================

    @staticmethod
    def _find_chain(avail_ranks: List[Rank], length: int, min_max_rank: int) -> Optional[List[Rank]]:
        """
        在 avail_ranks（已排序）中找到 length 个连续点数的序列，
        且序列最大值 > min_max_rank。返回最小的满足条件的序列。
        """
        if not length or len(avail_ranks) < length:
            return None
        for i in range(len(avail_ranks) - length + 1):
            window = avail_ranks[i:i + length]
            is_consecutive = all(window[j + 1] - window[j] == 1 for j in range(length - 1))
            if is_consecutive and window[-1] > min_max_rank:
                return window
        return None

    # ============================================================
    #  带牌辅助方法
    # ============================================================

    @staticmethod
    def _find_kickers(
        groups: Dict[Rank, List[int]],
        exclude: Set[Rank],
        size: int,
        count: int,
        distinct: bool = True,
    ) -> Optional[List[int]]:
        """
        找 count 组带牌，每组 size 张，排除 exclude 中的点数和炸弹。
        distinct=False 时单牌可以取自同一点数（四带二单）。
        """
        ranks = [r for r in sorted(groups) if r not in exclude and len(groups[r]) < 4]
        if not distinct:
            pool = [c for r in ranks for c in groups[r]]
            return pool[:count] if len(pool) >= count else None

        kickers: List[int] = []
        picked = 0
        for r in ranks:
            if len(groups[r]) >= size:
                kickers.extend(groups[r][:size])
                picked += 1
                if picked == count:
                    return kickers
        return None
