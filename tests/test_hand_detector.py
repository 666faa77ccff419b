"""牌型检测器单元测试 - 覆盖全部合法牌型 + 比较逻辑"""

import pytest

from landlord.engine.card import Rank
from landlord.engine.hand_type import HandType
from landlord.engine.hand_detector import detect_hand, can_beat

from helpers import cid, cards_of_rank, run_of, ROCKET


# ============================================================
#  基础牌型测试
# ============================================================

class TestBasicTypes:
    """单张、对子、三条、炸弹、火箭"""

    def test_single(self):
        hand = detect_hand([cid(Rank.ACE)])
        assert hand.type == HandType.SINGLE
        assert hand.power == Rank.ACE

    def test_single_power_equals_value(self):
        for card_id in range(1, 55):
            hand = detect_hand([card_id])
            assert hand.type == HandType.SINGLE

    def test_single_joker(self):
        hand = detect_hand([54])
        assert hand.type == HandType.SINGLE
        assert hand.power == Rank.BIG_JOKER

    def test_pair(self):
        hand = detect_hand(cards_of_rank(Rank.KING, 2))
        assert hand.type == HandType.PAIR
        assert hand.power == Rank.KING

    def test_triple(self):
        hand = detect_hand(cards_of_rank(Rank.SEVEN, 3))
        assert hand.type == HandType.TRIPLE
        assert hand.power == Rank.SEVEN

    def test_bomb(self):
        hand = detect_hand(cards_of_rank(Rank.ACE, 4))
        assert hand.type == HandType.BOMB
        assert hand.power == Rank.ACE

    def test_rocket(self):
        hand = detect_hand(ROCKET)
        assert hand.type == HandType.ROCKET

    def test_empty_is_invalid(self):
        hand = detect_hand([])
        assert hand.type == HandType.INVALID
        assert hand.power == 0

    def test_two_different_singles_invalid(self):
        hand = detect_hand([cid(Rank.THREE), cid(Rank.FOUR)])
        assert hand.type == HandType.INVALID
        assert hand.power == 0

    def test_cards_are_sorted_tuple(self):
        hand = detect_hand([cid(Rank.KING, 1), cid(Rank.KING, 0)])
        assert hand.cards == tuple(sorted(hand.cards))


# ============================================================
#  带牌类测试
# ============================================================

class TestWithKickers:
    """三带一、三带对、四带二单、四带二对"""

    def test_triple_with_single(self):
        cards = cards_of_rank(Rank.EIGHT, 3) + [cid(Rank.THREE)]
        hand = detect_hand(cards)
        assert hand.type == HandType.TRIPLE_WITH_SINGLE
        assert hand.power == Rank.EIGHT

    def test_triple_with_pair(self):
        cards = cards_of_rank(Rank.JACK, 3) + cards_of_rank(Rank.FIVE, 2)
        hand = detect_hand(cards)
        assert hand.type == HandType.TRIPLE_WITH_PAIR
        assert hand.power == Rank.JACK

    def test_triple_with_two_singles_invalid(self):
        cards = cards_of_rank(Rank.JACK, 3) + [cid(Rank.FIVE), cid(Rank.SIX)]
        assert detect_hand(cards).type == HandType.INVALID

    def test_four_with_two_singles(self):
        cards = cards_of_rank(Rank.TEN, 4) + [cid(Rank.THREE), cid(Rank.FIVE)]
        hand = detect_hand(cards)
        assert hand.type == HandType.FOUR_WITH_TWO_SINGLES
        assert hand.power == Rank.TEN

    def test_four_with_two_pairs(self):
        cards = (
            cards_of_rank(Rank.QUEEN, 4)
            + cards_of_rank(Rank.THREE, 2)
            + cards_of_rank(Rank.FIVE, 2)
        )
        hand = detect_hand(cards)
        assert hand.type == HandType.FOUR_WITH_TWO_PAIRS
        assert hand.power == Rank.QUEEN

    def test_four_with_pair_and_two_singles_invalid(self):
        cards = (
            cards_of_rank(Rank.QUEEN, 4)
            + cards_of_rank(Rank.THREE, 2)
            + [cid(Rank.FIVE), cid(Rank.SIX)]
        )
        assert detect_hand(cards).type == HandType.INVALID


# ============================================================
#  顺子类测试
# ============================================================

class TestStraights:
    """顺子、连对"""

    def test_straight_5(self):
        """5张顺子: 3-4-5-6-7"""
        hand = detect_hand(run_of(Rank.THREE, Rank.SEVEN))
        assert hand.type == HandType.STRAIGHT
        assert hand.power == Rank.SEVEN
        assert hand.chain_length == 5

    def test_straight_12(self):
        """最长顺子: 3到A共12张"""
        hand = detect_hand(run_of(Rank.THREE, Rank.ACE))
        assert hand.type == HandType.STRAIGHT
        assert hand.chain_length == 12
        assert hand.power == Rank.ACE

    def test_straight_with_2_invalid(self):
        """包含2的顺子非法"""
        assert detect_hand(run_of(Rank.TEN, Rank.TWO)).type == HandType.INVALID

    def test_four_card_run_invalid(self):
        assert detect_hand(run_of(Rank.THREE, Rank.SIX)).type == HandType.INVALID

    def test_gap_invalid(self):
        cards = run_of(Rank.THREE, Rank.SIX) + [cid(Rank.EIGHT)]
        assert detect_hand(cards).type == HandType.INVALID

    def test_straight_pair_3(self):
        """3对连对: 33-44-55"""
        hand = detect_hand(run_of(Rank.THREE, Rank.FIVE, width=2))
        assert hand.type == HandType.STRAIGHT_PAIR
        assert hand.power == Rank.FIVE
        assert hand.chain_length == 3

    def test_two_pairs_invalid(self):
        assert detect_hand(run_of(Rank.THREE, Rank.FOUR, width=2)).type == HandType.INVALID

    def test_straight_pair_with_2_invalid(self):
        assert detect_hand(run_of(Rank.KING, Rank.TWO, width=2)).type == HandType.INVALID


# ============================================================
#  飞机类测试
# ============================================================

class TestAirplanes:
    """飞机不带、飞机带单、飞机带对"""

    def test_airplane_plain(self):
        """飞机不带: 333-444"""
        hand = detect_hand(run_of(Rank.THREE, Rank.FOUR, width=3))
        assert hand.type == HandType.AIRPLANE
        assert hand.power == Rank.FOUR
        assert hand.run_length == 2

    def test_airplane_with_singles(self):
        """飞机带单: 333-444 + 5 + 6"""
        cards = run_of(Rank.THREE, Rank.FOUR, width=3) + [cid(Rank.FIVE), cid(Rank.SIX)]
        hand = detect_hand(cards)
        assert hand.type == HandType.AIRPLANE_WITH_SINGLES
        assert hand.power == Rank.FOUR
        assert hand.run_length == 2

    def test_airplane_with_pairs(self):
        """飞机带对: 333-444 + 55 + 66"""
        cards = (run_of(Rank.THREE, Rank.FOUR, width=3)
                 + cards_of_rank(Rank.FIVE, 2)
                 + cards_of_rank(Rank.SIX, 2))
        hand = detect_hand(cards)
        assert hand.type == HandType.AIRPLANE_WITH_PAIRS
        assert hand.power == Rank.FOUR
        assert hand.run_length == 2

    def test_airplane_3_groups(self):
        """3组飞机不带: 333-444-555"""
        hand = detect_hand(run_of(Rank.THREE, Rank.FIVE, width=3))
        assert hand.type == HandType.AIRPLANE
        assert hand.run_length == 3

    def test_airplane_with_same_rank_singles_invalid(self):
        """带的单牌必须互不相同"""
        cards = run_of(Rank.THREE, Rank.FOUR, width=3) + cards_of_rank(Rank.NINE, 2)
        assert detect_hand(cards).type == HandType.INVALID

    def test_plane_ending_in_twos(self):
        """AAA-222 是飞机（飞机不受顺子的 2 限制）"""
        hand = detect_hand(cards_of_rank(Rank.ACE, 3) + cards_of_rank(Rank.TWO, 3))
        assert hand.type == HandType.AIRPLANE
        assert hand.power == Rank.TWO
        assert hand.run_length == 2

    def test_three_group_plane_with_twos(self):
        """KKK-AAA-222"""
        cards = (cards_of_rank(Rank.KING, 3) + cards_of_rank(Rank.ACE, 3)
                 + cards_of_rank(Rank.TWO, 3))
        hand = detect_hand(cards)
        assert hand.type == HandType.AIRPLANE
        assert hand.power == Rank.TWO
        assert hand.run_length == 3

    def test_plane_with_twos_and_singles(self):
        cards = (cards_of_rank(Rank.ACE, 3) + cards_of_rank(Rank.TWO, 3)
                 + [cid(Rank.THREE), cid(Rank.FOUR)])
        hand = detect_hand(cards)
        assert hand.type == HandType.AIRPLANE_WITH_SINGLES
        assert hand.power == Rank.TWO

    def test_twos_plane_beats_lower_plane(self):
        low = detect_hand(run_of(Rank.QUEEN, Rank.KING, width=3))
        high = detect_hand(cards_of_rank(Rank.ACE, 3) + cards_of_rank(Rank.TWO, 3))
        assert can_beat(high, low) is True
        assert can_beat(low, high) is False

    def test_non_consecutive_triples_invalid(self):
        cards = cards_of_rank(Rank.THREE, 3) + cards_of_rank(Rank.FIVE, 3)
        assert detect_hand(cards).type == HandType.INVALID


# ============================================================
#  牌型比较测试
# ============================================================

class TestCanBeat:
    """can_beat 比较逻辑"""

    def test_open_round_accepts_any_valid(self):
        assert can_beat(detect_hand([cid(Rank.THREE)]), None) is True
        assert can_beat(detect_hand(run_of(Rank.THREE, Rank.SEVEN)), None) is True

    def test_open_round_rejects_invalid(self):
        assert can_beat(detect_hand([]), None) is False
        assert can_beat(detect_hand([cid(Rank.THREE), cid(Rank.NINE)]), None) is False

    def test_invalid_never_beats(self):
        invalid = detect_hand([cid(Rank.THREE), cid(Rank.NINE)])
        single = detect_hand([cid(Rank.THREE)])
        assert can_beat(invalid, single) is False

    def test_bigger_single_beats(self):
        h1 = detect_hand([cid(Rank.ACE)])
        h2 = detect_hand([cid(Rank.KING)])
        assert can_beat(h1, h2) is True
        assert can_beat(h2, h1) is False

    def test_equal_power_never_beats(self):
        h1 = detect_hand([cid(Rank.NINE, 0)])
        h2 = detect_hand([cid(Rank.NINE, 1)])
        assert can_beat(h1, h2) is False
        assert can_beat(h2, h1) is False

    def test_bomb_beats_single(self):
        bomb = detect_hand(cards_of_rank(Rank.THREE, 4))
        single = detect_hand([cid(Rank.ACE)])
        assert can_beat(bomb, single) is True
        assert can_beat(single, bomb) is False

    @pytest.mark.parametrize("cards", [
        [cid(Rank.TWO)],
        cards_of_rank(Rank.TWO, 2),
        cards_of_rank(Rank.KING, 3) + [cid(Rank.THREE)],
        run_of(Rank.TEN, Rank.ACE),
        run_of(Rank.QUEEN, Rank.ACE, width=2),
        run_of(Rank.KING, Rank.ACE, width=3),
        cards_of_rank(Rank.KING, 4) + [cid(Rank.THREE), cid(Rank.FIVE)],
    ])
    def test_bomb_beats_any_ordinary_type(self, cards):
        bomb = detect_hand(cards_of_rank(Rank.THREE, 4))
        assert can_beat(bomb, detect_hand(cards)) is True

    def test_bigger_bomb_beats_smaller(self):
        big = detect_hand(cards_of_rank(Rank.ACE, 4))
        small = detect_hand(cards_of_rank(Rank.THREE, 4))
        assert can_beat(big, small) is True
        assert can_beat(small, big) is False

    def test_rocket_beats_bomb(self):
        rocket = detect_hand(ROCKET)
        bomb = detect_hand(cards_of_rank(Rank.TWO, 4))
        assert can_beat(rocket, bomb) is True
        assert can_beat(bomb, rocket) is False

    def test_nothing_beats_rocket(self):
        rocket = detect_hand(ROCKET)
        for cards in ([54], cards_of_rank(Rank.TWO, 4), run_of(Rank.TEN, Rank.ACE)):
            assert can_beat(detect_hand(cards), rocket) is False

    def test_different_type_cannot_beat(self):
        single = detect_hand([cid(Rank.ACE)])
        pair = detect_hand(cards_of_rank(Rank.THREE, 2))
        assert can_beat(single, pair) is False
        assert can_beat(pair, single) is False

    def test_triple_with_single_vs_triple_with_pair(self):
        t1 = detect_hand(cards_of_rank(Rank.KING, 3) + [cid(Rank.THREE)])
        t2 = detect_hand(cards_of_rank(Rank.FOUR, 3) + cards_of_rank(Rank.FIVE, 2))
        assert can_beat(t1, t2) is False
        assert can_beat(t2, t1) is False

    def test_different_length_straight_cannot_beat(self):
        s5 = detect_hand(run_of(Rank.THREE, Rank.SEVEN))
        s6 = detect_hand(run_of(Rank.THREE, Rank.EIGHT))
        assert can_beat(s6, s5) is False
        assert can_beat(s5, s6) is False

    def test_different_length_straight_pair_cannot_beat(self):
        p3 = detect_hand(run_of(Rank.THREE, Rank.FIVE, width=2))
        p4 = detect_hand(run_of(Rank.NINE, Rank.QUEEN, width=2))
        assert can_beat(p4, p3) is False
        assert can_beat(p3, p4) is False

    def test_different_length_airplane_cannot_beat(self):
        a2 = detect_hand(run_of(Rank.THREE, Rank.FOUR, width=3))
        a3 = detect_hand(run_of(Rank.NINE, Rank.JACK, width=3))
        assert can_beat(a3, a2) is False

    def test_same_length_straight_comparison(self):
        low = detect_hand(run_of(Rank.THREE, Rank.SEVEN))
        high = detect_hand(run_of(Rank.FOUR, Rank.EIGHT))
        assert can_beat(high, low) is True
        assert can_beat(low, high) is False

    def test_same_length_airplane_comparison(self):
        low = detect_hand(run_of(Rank.THREE, Rank.FOUR, width=3) + [cid(Rank.NINE), cid(Rank.TEN)])
        high = detect_hand(run_of(Rank.FIVE, Rank.SIX, width=3) + [cid(Rank.THREE), cid(Rank.FOUR)])
        assert can_beat(high, low) is True
        assert can_beat(low, high) is False
