"""座位模型 - 一个连接在房间中占据的固定座位"""

import uuid
from dataclasses import dataclass, field


@dataclass
class Seat:
    """一个座位"""
    index: int                       # 座位号 0/1/2，整局不变
    connection_id: str               # 传输层提供的连接标识
    player_id: str = field(default_factory=lambda: str(uuid.uuid4()))
