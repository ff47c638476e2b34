"""启动时构建一次的共享服务对象。

事件路由器和所有命令都通过这个对象访问存储和配置，
不存在任何全局的数据库连接或命令表。
"""

from __future__ import annotations

from dataclasses import dataclass

from tellbot.config.schema import BotConfig, Config
from tellbot.storage.activity import ActivityTracker
from tellbot.storage.database import Database
from tellbot.storage.mailbox import MailboxStore


@dataclass
class Services:
    """存储与行为配置的集合。"""

    db: Database
    activity: ActivityTracker
    mailbox: MailboxStore
    bot: BotConfig

    @classmethod
    def from_config(cls, config: Config) -> "Services":
        """
        根据配置创建服务对象。

        Args:
            config: 根配置

        Returns:
            尚未初始化数据库的服务对象，调用方需要先await db.init()
        """
        db = Database(config.db_path, busy_timeout_ms=config.storage.busy_timeout_ms)
        return cls(
            db=db,
            activity=ActivityTracker(db),
            mailbox=MailboxStore(db, quota=config.bot.tell_quota),
            bot=config.bot,
        )
