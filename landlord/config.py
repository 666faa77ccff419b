"""配置 - 对局计时与服务监听参数，可由环境变量 / .env 覆盖"""

from dataclasses import dataclass

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 叫分/出牌超时（秒）
BIDDING_SECONDS = 10
PLAY_SECONDS = 30
# 三人都不叫时最多重新发牌次数
MAX_REDEALS = 3

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5179


@dataclass(frozen=True)
class GameConfig:
    """单局规则参数"""
    bidding_seconds: float = BIDDING_SECONDS
    play_seconds: float = PLAY_SECONDS
    max_redeals: int = MAX_REDEALS

    def __post_init__(self) -> None:
        if self.bidding_seconds <= 0 or self.play_seconds <= 0:
            raise ValueError("超时时间必须为正数")
        if self.max_redeals < 0:
            raise ValueError("max_redeals 不能为负数")


class ServerConfig(BaseSettings):
    """
    服务参数。
    环境变量统一带 LANDLORD_ 前缀，端口也接受平台注入的 PORT。
    """
    model_config = SettingsConfigDict(
        env_prefix="LANDLORD_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, validation_alias=AliasChoices("LANDLORD_PORT", "PORT"))
    log_level: str = "INFO"
    bidding_seconds: float = Field(default=BIDDING_SECONDS, gt=0)
    play_seconds: float = Field(default=PLAY_SECONDS, gt=0)
    max_redeals: int = Field(default=MAX_REDEALS, ge=0)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def game(self) -> GameConfig:
        return GameConfig(
            bidding_seconds=self.bidding_seconds,
            play_seconds=self.play_seconds,
            max_redeals=self.max_redeals,
        )

    def with_overrides(self, **overrides) -> "ServerConfig":
        """命令行参数覆盖（值为 None 的项忽略）"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return self.model_validate({**self.model_dump(), **changes})
