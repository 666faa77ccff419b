"""对局控制器 - 驱动一个房间的斗地主对局

入座 → 发牌 → 叫地主 → 出牌 → 结算，外加超时与断线处理。
所有指令先完整校验再修改状态，被拒绝时抛出 GameError 且状态不变。
状态变化产生的推送先放进待发队列，由房间注册表在指令结束后统一投递。
"""

import logging
import random
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from landlord.ai.advisor import HandAdvisor
from landlord.config import GameConfig
from landlord.engine.card import create_deck, deal, is_card_id, sort_cards, cards_display
from landlord.engine.hand_type import PlayedHand
from landlord.engine.hand_detector import detect_hand, can_beat
from landlord.game.errors import ErrorCode, GameError
from landlord.game.game_state import (
    Deadline, DeadlineKind, GamePhase, Room, SEAT_COUNT,
)
from landlord.game.seat import Seat
from landlord.game.snapshot import project, seconds_remaining

logger = logging.getLogger(__name__)

# 推送事件
ROOM_UPDATE = "room:update"
BIDDING_STARTED = "bidding:started"
BIDDING_STATE = "bidding:state"
BIDDING_REDEAL = "bidding:redeal"
BIDDING_ENDED = "bidding:ended"
GAME_STARTED = "game:started"
GAME_UPDATE = "game:update"
GAME_ENDED = "game:ended"

MAX_BID = 3


@dataclass(frozen=True)
class Notification:
    """一条待投递给某个连接的推送"""
    connection_id: str
    event: str
    payload: dict


class MatchController:
    """对局控制器：一个房间的单写者状态机"""

    def __init__(
        self,
        room: Room,
        config: Optional[GameConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        advisor: Optional[HandAdvisor] = None,
    ):
        self.room = room
        self.config = config or GameConfig()
        self._clock = clock
        self._rng = rng or random.Random()
        self._advisor = advisor or HandAdvisor()
        self._outbox: List[Notification] = []

    @property
    def finished(self) -> bool:
        return self.room.phase == GamePhase.ENDED

    def drain(self) -> List[Notification]:
        """取出并清空待投递的推送"""
        out, self._outbox = self._outbox, []
        return out

    # ============================================================
    #  推送
    # ============================================================

    def _broadcast(self, event: str, payload: dict) -> None:
        for seat in self.room.seats.values():
            self._outbox.append(Notification(seat.connection_id, event, payload))

    def _broadcast_snapshot(self, event: str) -> None:
        """给每个座位各推一份个性化快照"""
        now = self._clock()
        for seat in self.room.seats.values():
            payload = project(self.room, seat.index, now, self._advisor)
            self._outbox.append(Notification(seat.connection_id, event, payload))

    def _bidding_payload(self) -> dict:
        return {
            "biddingSeat": self.room.bidding_seat,
            "currentBid": self.room.current_bid,
            "secondsRemaining": seconds_remaining(self.room, self._clock()),
        }

    # ============================================================
    #  倒计时
    # ============================================================

    def _arm(self, kind: DeadlineKind, seat: int) -> None:
        """重新计时：旧倒计时作废，序号递增"""
        seconds = self.config.bidding_seconds if kind == DeadlineKind.BID else self.config.play_seconds
        self.room.deadline_serial += 1
        self.room.deadline = Deadline(
            kind=kind,
            seat=seat,
            expires_at=self._clock() + seconds,
            serial=self.room.deadline_serial,
        )

    def _disarm(self) -> None:
        self.room.deadline = None

    def on_deadline(self, serial: int) -> bool:
        """
        倒计时到期。只看房间当前状态，不信任定时器创建时的信息：
        序号不符、阶段不符或轮到的座位已变化都视为过期，直接忽略。
        返回是否执行了超时动作。
        """
        room = self.room
        d = room.deadline
        if d is None or d.serial != serial:
            return False

        if d.kind == DeadlineKind.BID:
            if room.phase != GamePhase.BIDDING or room.bidding_seat != d.seat:
                return False
            logger.debug("房间 %s 座位 %d 叫分超时，视为不叫", room.id, d.seat)
            self._apply_bid(d.seat, 0)
            return True

        if room.phase != GamePhase.PLAYING or room.current_seat != d.seat:
            return False
        if self._may_pass(d.seat):
            logger.debug("房间 %s 座位 %d 出牌超时，自动不出", room.id, d.seat)
            self._apply_pass(d.seat)
        else:
            # 首出或本轮最大者不能不出：重新计时继续等待
            logger.debug("房间 %s 座位 %d 出牌超时但不能不出，重新计时", room.id, d.seat)
            self._arm(DeadlineKind.PLAY, d.seat)
            self._broadcast_snapshot(GAME_UPDATE)
        return True

    # ============================================================
    #  校验
    # ============================================================

    def _require_phase(self, phase: GamePhase) -> None:
        if self.room.phase != phase:
            raise GameError(
                ErrorCode.WRONG_PHASE,
                f"当前阶段为 {self.room.phase.value}，需要 {phase.value}",
            )

    @staticmethod
    def _require_turn(seat: int, expected: int) -> None:
        if seat != expected:
            raise GameError(ErrorCode.NOT_YOUR_TURN, f"还没轮到座位 {seat}")

    def _may_pass(self, seat: int) -> bool:
        """首出（新一轮）或本轮最大者不能不出"""
        return bool(self.room.last_play) and self.room.last_play_owner != seat

    # ============================================================
    #  入座 / 发牌
    # ============================================================

    def join(self, connection_id: str) -> int:
        """入座，返回座位号。第三人入座后立即发牌进入叫地主"""
        room = self.room
        if room.phase != GamePhase.WAITING or room.is_full:
            raise GameError(ErrorCode.ROOM_FULL, f"房间 {room.id} 已满")

        index = room.free_seat()
        room.seats[index] = Seat(index=index, connection_id=connection_id)
        logger.info("连接 %s 进入房间 %s 座位 %d", connection_id, room.id, index)
        self._broadcast_snapshot(ROOM_UPDATE)

        if room.is_full:
            self._deal()
            self._broadcast_snapshot(ROOM_UPDATE)
            self._broadcast(BIDDING_STARTED, self._bidding_payload())
        return index

    def _deal(self) -> None:
        """洗牌发牌，随机选首叫座位"""
        room = self.room
        hands, bottom = deal(create_deck(), self._rng)
        room.hands = hands
        room.bottom_cards = bottom

        room.first_bidder = self._rng.randrange(SEAT_COUNT)
        room.bidding_seat = room.first_bidder
        room.current_bid = 0
        room.provisional_landlord = None
        room.bid_turns = 0
        room.phase = GamePhase.BIDDING
        self._arm(DeadlineKind.BID, room.bidding_seat)
        logger.info("房间 %s 发牌完成，座位 %d 首叫", room.id, room.first_bidder)

    # ============================================================
    #  叫地主阶段
    # ============================================================

    def bid(self, seat: int, amount: int) -> None:
        """叫分：0=不叫，1/2/3=叫分；不高于当前最高分的叫分视为不叫"""
        self._require_phase(GamePhase.BIDDING)
        self._require_turn(seat, self.room.bidding_seat)
        if isinstance(amount, bool) or not isinstance(amount, int) or not 0 <= amount <= MAX_BID:
            raise GameError(ErrorCode.INVALID_BID, f"叫分必须是 0..{MAX_BID} 的整数: {amount!r}")
        self._apply_bid(seat, amount)

    def _apply_bid(self, seat: int, amount: int) -> None:
        room = self.room
        room.bid_turns += 1
        if amount > room.current_bid:
            room.current_bid = amount
            room.provisional_landlord = seat
        logger.debug("房间 %s 座位 %d 叫分 %d（当前最高 %d）", room.id, seat, amount, room.current_bid)

        # 叫3分直接确定
        if room.current_bid == MAX_BID:
            self._start_playing()
            return

        room.bidding_seat = (seat + 1) % SEAT_COUNT

        # 轮回到暂定地主，叫分结束
        if room.provisional_landlord is not None and room.bidding_seat == room.provisional_landlord:
            self._start_playing()
            return

        # 三人都不叫
        if room.provisional_landlord is None and room.bid_turns >= SEAT_COUNT:
            self._handle_no_bid()
            return

        self._arm(DeadlineKind.BID, room.bidding_seat)
        self._broadcast(BIDDING_STATE, self._bidding_payload())
        self._broadcast_snapshot(ROOM_UPDATE)

    def _handle_no_bid(self) -> None:
        """无人叫分：重新发牌；超过次数后强制首叫者以1分当地主"""
        room = self.room
        if room.redeal_count < self.config.max_redeals:
            room.redeal_count += 1
            logger.info("房间 %s 三人都不叫，第 %d 次重新发牌", room.id, room.redeal_count)
            self._deal()
            self._broadcast(BIDDING_REDEAL, {"redealCount": room.redeal_count})
            self._broadcast_snapshot(ROOM_UPDATE)
            self._broadcast(BIDDING_STARTED, self._bidding_payload())
            return

        landlord = self._seated_from(room.first_bidder)
        logger.info("房间 %s 超过重发次数，座位 %d 强制当地主", room.id, landlord)
        room.provisional_landlord = landlord
        room.current_bid = 1
        self._start_playing()

    def _seated_from(self, start: int) -> int:
        """从 start 起按座位顺序找第一个仍在房间里的座位；房间已空时返回 start"""
        for offset in range(SEAT_COUNT):
            index = (start + offset) % SEAT_COUNT
            if index in self.room.seats:
                return index
        return start

    def _start_playing(self) -> None:
        """确定地主：发底牌，地主先出"""
        room = self.room
        landlord = room.provisional_landlord
        room.landlord_seat = landlord
        room.hands[landlord] = sort_cards(room.hands[landlord] + room.bottom_cards)

        room.current_seat = landlord
        room.last_play = ()
        room.last_play_owner = None
        room.pass_count = 0
        room.phase = GamePhase.PLAYING
        self._arm(DeadlineKind.PLAY, landlord)
        logger.info("房间 %s 座位 %d 当地主（%d 分）", room.id, landlord, room.current_bid)

        self._broadcast(BIDDING_ENDED, {"landlordSeat": landlord, "currentBid": room.current_bid})
        self._broadcast_snapshot(GAME_STARTED)

    # ============================================================
    #  出牌阶段
    # ============================================================

    def play(self, seat: int, cards: Sequence[int]) -> PlayedHand:
        """出牌，返回识别出的牌型"""
        room = self.room
        self._require_phase(GamePhase.PLAYING)
        self._require_turn(seat, room.current_seat)

        cards = list(cards)
        if not cards or not all(is_card_id(c) for c in cards):
            raise GameError(ErrorCode.CARDS_NOT_IN_HAND, "出牌必须是手牌中的牌编号")
        counts = Counter(cards)
        hand = set(room.hands[seat])
        if any(n > 1 for n in counts.values()) or not hand.issuperset(counts):
            raise GameError(ErrorCode.CARDS_NOT_IN_HAND, "手牌中没有这些牌")

        current = detect_hand(cards)
        previous = detect_hand(room.last_play) if room.last_play else None
        if not can_beat(current, previous):
            raise GameError(ErrorCode.INVALID_PLAY, f"{current!r} 不能压过 {previous!r}")

        self._apply_play(seat, current)
        return current

    def _apply_play(self, seat: int, hand: PlayedHand) -> None:
        room = self.room
        played = set(hand.cards)
        room.hands[seat] = [c for c in room.hands[seat] if c not in played]

        room.last_play = hand.cards
        room.last_play_owner = seat
        room.pass_count = 0
        room.play_counts[seat] += 1
        if hand.is_bomb_like:
            room.bomb_count += 1
        if seat == room.landlord_seat:
            room.landlord_has_played = True
        logger.debug("房间 %s 座位 %d 出牌 %s", room.id, seat, cards_display(hand.cards))

        room.current_seat = (seat + 1) % SEAT_COUNT
        if not room.hands[seat]:
            self._finish_game(seat)
            return

        self._arm(DeadlineKind.PLAY, room.current_seat)
        self._broadcast_snapshot(GAME_UPDATE)

    def pass_turn(self, seat: int) -> None:
        """不出"""
        self._require_phase(GamePhase.PLAYING)
        self._require_turn(seat, self.room.current_seat)
        if not self._may_pass(seat):
            raise GameError(ErrorCode.CANNOT_PASS, "新一轮首出或本轮最大者不能不出")
        self._apply_pass(seat)

    def _apply_pass(self, seat: int) -> None:
        room = self.room
        room.pass_count += 1
        room.current_seat = (seat + 1) % SEAT_COUNT
        logger.debug("房间 %s 座位 %d 不出", room.id, seat)

        # 两家都不出，本轮结束，最后出牌者重新自由出牌
        if room.pass_count >= 2 and room.current_seat == room.last_play_owner:
            room.last_play = ()
            room.last_play_owner = None
            room.pass_count = 0

        self._arm(DeadlineKind.PLAY, room.current_seat)
        self._broadcast_snapshot(GAME_UPDATE)

    # ============================================================
    #  离开
    # ============================================================

    def disconnect(self, seat: int) -> None:
        """座位离开：立即移除，不支持重连"""
        room = self.room
        if seat not in room.seats:
            raise GameError(ErrorCode.NOT_SEATED, f"座位 {seat} 不在房间 {room.id}")
        del room.seats[seat]
        logger.info("房间 %s 座位 %d 离开（阶段 %s）", room.id, seat, room.phase.value)
        if room.is_empty:
            self._disarm()
            return
        self._broadcast_snapshot(ROOM_UPDATE)

    # ============================================================
    #  结算阶段
    # ============================================================

    def _finish_game(self, winner: int) -> None:
        """游戏结束：先推最后一手牌的快照，再推结算"""
        room = self.room
        room.phase = GamePhase.ENDED
        room.winner = winner
        self._disarm()
        self._broadcast_snapshot(GAME_UPDATE)
        result = self._settle(winner)
        logger.info("房间 %s 座位 %d 出完牌获胜 %s", room.id, winner, result)
        self._broadcast(GAME_ENDED, result)

    def _settle(self, winner: int) -> dict:
        """
        计算结算信息。
        春天：地主赢且两个农民都没出过牌；反春：农民赢且地主只出过一手牌。
        倍数 = 叫分 × 2^炸弹数，春天/反春再 ×2
        """
        room = self.room
        landlord = room.landlord_seat
        landlord_wins = winner == landlord
        farmers = [s for s in range(SEAT_COUNT) if s != landlord]

        spring = landlord_wins and all(room.play_counts[f] == 0 for f in farmers)
        anti_spring = not landlord_wins and room.play_counts[landlord] <= 1

        multiplier = max(room.current_bid, 1) * (2 ** room.bomb_count)
        if spring or anti_spring:
            multiplier *= 2

        return {
            "winnerSeat": winner,
            "landlordSeat": landlord,
            "landlordWins": landlord_wins,
            "spring": spring,
            "antiSpring": anti_spring,
            "bombCount": room.bomb_count,
            "multiplier": multiplier,
        }
