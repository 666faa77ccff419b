"""快照投影 - 把房间权威状态渲染成某个座位可见的视图

每个座位只能看到自己的手牌；底牌只在开局后对地主可见，
地主第一次出牌后底牌记录清空，所有人只看到 bottomCount=0。
"""

import math
from typing import Optional

from landlord.ai.advisor import HandAdvisor
from landlord.engine.hand_detector import detect_hand
from landlord.game.game_state import GamePhase, Room


def _bottom_visible(room: Room) -> bool:
    return room.phase != GamePhase.WAITING and not room.landlord_has_played


def seconds_remaining(room: Room, now: float) -> Optional[int]:
    if room.deadline is None:
        return None
    return max(0, math.ceil(room.deadline.expires_at - now))


def project(
    room: Room,
    viewer_seat: Optional[int],
    now: float,
    advisor: Optional[HandAdvisor] = None,
) -> dict:
    """生成 viewer_seat 视角的快照"""
    bidding = room.phase == GamePhase.BIDDING
    started = room.phase in (GamePhase.PLAYING, GamePhase.ENDED)
    bottom_count = len(room.bottom_cards) if _bottom_visible(room) else 0
    is_landlord = viewer_seat is not None and viewer_seat == room.landlord_seat

    last_play_type = detect_hand(room.last_play).type.value if room.last_play else None

    snapshot = {
        "id": room.id,
        "phase": room.phase.value,
        "started": started,
        "bidding": bidding,
        "currentBid": room.current_bid,
        "biddingSeat": room.bidding_seat if bidding else None,
        "landlordSeat": room.landlord_seat,
        "bottomCount": bottom_count,
        "bottom": list(room.bottom_cards) if started and is_landlord and bottom_count else [],
        "currentSeat": room.current_seat,
        "lastPlay": list(room.last_play),
        "lastPlayType": last_play_type,
        "lastPlayOwnerSeat": room.last_play_owner,
        "players": [
            {
                "id": seat.player_id,
                "seat": seat.index,
                "handCount": len(room.hands[seat.index]),
                "hand": list(room.hands[seat.index]) if seat.index == viewer_seat else [],
            }
            for seat in sorted(room.seats.values(), key=lambda s: s.index)
        ],
        "secondsRemaining": seconds_remaining(room, now),
        "hint": None,
    }

    # 只给当前出牌者推送提示
    if advisor is not None and room.phase == GamePhase.PLAYING and viewer_seat == room.current_seat:
        reference = detect_hand(room.last_play) if room.last_play else None
        advice = advisor.advise(room.hands[viewer_seat], reference)
        snapshot["hint"] = {
            "canBeat": advice.can_beat,
            "suggestion": list(advice.cards) if advice.cards else [],
        }

    return snapshot
