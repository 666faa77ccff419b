"""对局错误 - 所有被拒绝的指令都以 GameError 抛出，拒绝时不修改任何状态"""

from enum import Enum


class ErrorCode(str, Enum):
    """错误码"""
    # 协议错误
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    WRONG_PHASE = "WRONG_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_SEATED = "NOT_SEATED"
    ALREADY_SEATED = "ALREADY_SEATED"
    BAD_REQUEST = "BAD_REQUEST"
    # 规则错误
    CARDS_NOT_IN_HAND = "CARDS_NOT_IN_HAND"
    INVALID_PLAY = "INVALID_PLAY"
    INVALID_BID = "INVALID_BID"
    CANNOT_PASS = "CANNOT_PASS"
    # 内部错误
    INTERNAL_ERROR = "INTERNAL_ERROR"


class GameError(Exception):
    """Base exception for game-related errors."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.code.value, "message": self.message}
