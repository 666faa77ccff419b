# 游戏引擎模块
from .card import Rank, Suit, card_rank, card_suit, create_deck, deal, sort_cards
from .hand_type import HandType, PlayedHand, ChainHand, AirplaneHand
from .hand_detector import detect_hand, can_beat
