# 对局流程控制模块
from .seat import Seat
from .game_state import Room, GamePhase, Deadline, DeadlineKind
from .errors import ErrorCode, GameError
from .controller import MatchController, Notification
from .registry import RoomRegistry, AsyncioScheduler
