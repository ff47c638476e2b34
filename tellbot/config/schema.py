"""使用Pydantic的配置模式定义。

此模块定义了tellbot的所有配置结构，包括：
- IRC连接配置（服务器、TLS、昵称、要加入的频道）
- 机器人行为配置（命令前缀、启用的命令、留言配额）
- 存储配置（SQLite数据库路径）

所有配置类都继承自Pydantic的BaseModel，提供类型验证。
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from tellbot.bus.events import CHANNEL_MARKERS

DEFAULT_COMMANDS = ["echo", "help", "seen", "tell"]


class IrcConfig(BaseModel):
    """IRC渠道配置。"""
    enabled: bool = True  # 是否启用
    server: str = "irc.rizon.net"  # IRC服务器地址
    port: int = 6697  # 端口（TLS默认6697）
    use_tls: bool = True  # 是否使用TLS
    verify_tls: bool = True  # 是否校验服务器证书
    nick: str = "mega_test_bot"  # 机器人昵称
    ident: str = "m_test_bot"  # USER命令中的用户名
    realname: str = "tellbot"  # USER命令中的真实姓名
    password: str = ""  # 服务器密码（可选，发送PASS）
    channels: list[str] = Field(default_factory=lambda: ["#go-eventirc-test"])  # 连接后加入的频道
    reconnect_delay: float = 5.0  # 断线重连等待时间（秒）
    max_line_length: int = 400  # 单行消息的最大字节数
    ping_timeout: float = Field(default=120.0, gt=0)  # 连接空闲多久后发送PING（秒）

    @field_validator("channels")
    @classmethod
    def _check_channels(cls, value: list[str]) -> list[str]:
        for name in value:
            if not name.startswith(CHANNEL_MARKERS):
                raise ValueError(f"channel {name!r} must start with one of {''.join(CHANNEL_MARKERS)}")
        return value


class BotConfig(BaseModel):
    """机器人行为配置。"""
    prefix: str = "."  # 命令前缀
    commands: list[str] = Field(default_factory=lambda: list(DEFAULT_COMMANDS))  # 启用的命令
    mention_reply: bool = False  # 被提到时回复自己的昵称
    tell_quota: int = 5  # 每个(发送者, 接收者, 频道)最多的未投递留言数
    timestamp_format: str = "%Y-%m-%d %H:%M:%S UTC"  # 回复中使用的时间格式

    @field_validator("prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if len(value) != 1 or value.isspace():
            raise ValueError("prefix must be a single non-space character")
        return value

    @field_validator("tell_quota")
    @classmethod
    def _check_quota(cls, value: int) -> int:
        if value < 1:
            raise ValueError("tell_quota must be at least 1")
        return value


class StorageConfig(BaseModel):
    """SQLite存储配置。"""
    db_path: str = "~/.tellbot/tellbot.db"  # 数据库文件路径
    busy_timeout_ms: int = 5000  # 等待写锁的最长时间（毫秒）


class Config(BaseSettings):
    """
    tellbot的根配置类。

    支持从环境变量加载配置（通过TELLBOT_前缀），
    例如 TELLBOT_IRC__NICK=mybot。
    """
    irc: IrcConfig = Field(default_factory=IrcConfig)  # IRC配置
    bot: BotConfig = Field(default_factory=BotConfig)  # 机器人行为配置
    storage: StorageConfig = Field(default_factory=StorageConfig)  # 存储配置

    @property
    def db_path(self) -> Path:
        """
        获取展开后的数据库路径。

        Returns:
            数据库文件路径
        """
        return Path(self.storage.db_path).expanduser()

    model_config = ConfigDict(
        env_prefix="TELLBOT_",
        env_nested_delimiter="__"
    )
