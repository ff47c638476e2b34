"""tell命令：给不在场的用户留言。

留言会在接收者下一次于同一频道发言时由事件路由器转交。
"""

import sqlite3

from loguru import logger

from tellbot.agent.commands.base import Command
from tellbot.errors import QuotaExceededError


class TellCommand(Command):
    name = "tell"
    description = "leave a message for someone who is away"
    arguments = "<nick> <message>"

    async def execute(self, sender_nick: str, channel: str, args: list[str]) -> str | None:
        """
        保存一条留言。

        配额检查与写入在存储层的同一个事务中完成，
        这里只负责把结果转换为回复文本。

        Args:
            sender_nick: 留言者昵称
            channel: 当前频道
            args: 第一个参数为接收者昵称，其余参数组成留言内容

        Returns:
            回复文本
        """
        if len(args) < 2:
            return self.usage

        recipient = args[0]
        message = " ".join(args[1:])
        try:
            await self.services.mailbox.queue(sender_nick, recipient, channel, message)
        except QuotaExceededError as e:
            logger.info(f"Tell rejected: {e}")
            return f"Sorry, you already have {e.quota} pending messages for {recipient}."
        except sqlite3.Error as e:
            logger.error(f"Failed to save message from {sender_nick} to {recipient} in {channel}: {e}")
            return "Sorry, an error occurred while saving your message."

        return f"{sender_nick}: I'll pass that on when {recipient} is around."
