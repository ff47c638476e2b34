"""seen命令：查询某个用户在当前频道的最后一次发言。"""

import sqlite3

from loguru import logger

from tellbot.agent.commands.base import Command
from tellbot.utils.helpers import format_timestamp


class SeenCommand(Command):
    name = "seen"
    description = "report when a user last spoke in this channel"
    arguments = "<nick>"

    async def execute(self, sender_nick: str, channel: str, args: list[str]) -> str | None:
        """
        查询活动记录并生成回复。

        Args:
            sender_nick: 调用者昵称
            channel: 当前频道
            args: 第一个参数为要查询的昵称，其余参数忽略

        Returns:
            回复文本
        """
        if not args:
            return self.usage

        nick = args[0]
        try:
            record = await self.services.activity.last_seen(nick, channel)
        except sqlite3.Error as e:
            logger.error(f"Failed to look up activity for {nick} in {channel}: {e}")
            return f"Sorry, an error occurred while looking up {nick}."

        if record is None:
            return f"I haven't seen {nick} around."

        when = format_timestamp(record.last_seen, self.services.bot.timestamp_format)
        return f'{nick} was last seen on {when} saying: "{record.last_message}"'
