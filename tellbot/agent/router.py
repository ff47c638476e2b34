"""事件路由器：核心处理引擎。

此模块实现了机器人的主处理循环，对每个入站事件依次执行：
1. 过滤私聊和机器人自己的消息
2. 记录发言者的活动
3. 转交发给发言者的留言
4. （可选）被提到时回复自己的昵称
5. 解析前缀命令并分发给命令注册表

路由器是入站队列唯一的消费者，一个事件处理完毕后才会处理下一个。
"""

import asyncio
import sqlite3
from typing import Callable

from loguru import logger

from tellbot.agent.commands.registry import CommandRegistry
from tellbot.agent.services import Services
from tellbot.bus.events import InboundMessage
from tellbot.bus.queue import MessageBus
from tellbot.storage.mailbox import MailboxEntry
from tellbot.utils.helpers import format_timestamp, truncate_string


def parse_command(text: str, prefix: str) -> tuple[str, list[str]] | None:
    """
    从消息文本中解析前缀命令。

    Args:
        text: 原始消息文本
        prefix: 命令前缀字符

    Returns:
        (小写命令名称, 参数列表)，如果不是命令或前缀后没有内容则返回None
    """
    msg = text.strip()
    if not msg.startswith(prefix):
        return None
    parts = msg[len(prefix):].split()
    if not parts:
        return None
    return parts[0].lower(), parts[1:]


def format_delivery(recipient_nick: str, entry: MailboxEntry, timestamp_format: str) -> str:
    """
    生成转交留言时发送到频道的文本。

    例如：Bob: "hello" ~ Alice [2026-01-01 12:00:00 UTC]
    """
    when = format_timestamp(entry.created_at, timestamp_format)
    return f'{recipient_nick}: "{entry.message}" ~ {entry.sender} [{when}]'


class EventRouter:
    """
    对入站事件进行分类并驱动存储和命令。

    除了启动时的数据库初始化之外，这里出现的任何错误都只影响当前事件，
    不会终止处理循环。
    """

    def __init__(
        self,
        bus: MessageBus,
        services: Services,
        registry: CommandRegistry,
        bot_nick: Callable[[], str],
    ):
        """
        初始化事件路由器。

        Args:
            bus: 消息总线
            services: 共享服务对象
            registry: 已冻结的命令注册表
            bot_nick: 返回机器人当前昵称的函数（昵称可能在运行中变化）
        """
        self.bus = bus
        self.services = services
        self.registry = registry
        self.bot_nick = bot_nick
        self._running = False

    async def run(self) -> None:
        """
        运行路由循环，持续处理来自消息总线的事件。
        """
        self._running = True
        logger.info("Event router started")

        while self._running:
            try:
                msg = await asyncio.wait_for(self.bus.consume_inbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                await self.handle(msg)
            except Exception as e:
                logger.error(f"Error processing message from {msg.sender_nick} in {msg.target}: {e}")

    def stop(self) -> None:
        """停止路由循环，循环会在下一次迭代时退出。"""
        self._running = False
        logger.info("Event router stopping")

    async def handle(self, msg: InboundMessage) -> None:
        """
        处理单个入站事件。

        Args:
            msg: 入站事件
        """
        if not msg.is_channel_message:
            logger.debug(f"Ignoring private message from {msg.sender_nick}")
            return

        bot_nick = self.bot_nick()
        if msg.sender_nick.lower() == bot_nick.lower():
            return

        logger.debug(f"{msg.target} <{msg.sender_nick}> {truncate_string(msg.content, 120)}")

        await self._record_activity(msg)
        await self._deliver_pending(msg)

        if self.services.bot.mention_reply and bot_nick.lower() in msg.content.lower():
            await self.bus.send_text(msg.target, bot_nick)

        parsed = parse_command(msg.content, self.services.bot.prefix)
        if parsed is None:
            return
        name, args = parsed

        command = self.registry.get(name)
        if command is None:
            logger.debug(f"Unknown command '{name}' from {msg.sender_nick}")
            return

        logger.info(f"Command {name} from {msg.sender_nick} in {msg.target}")
        try:
            reply = await command.execute(msg.sender_nick, msg.target, args)
        except Exception as e:
            logger.error(f"Command {name} failed: {e}")
            return

        if reply:
            await self.bus.send_text(msg.target, reply)

    async def _record_activity(self, msg: InboundMessage) -> None:
        """记录发言者的活动，失败时只记录日志。"""
        try:
            await self.services.activity.record(msg.sender_nick, msg.target, msg.content, msg.timestamp)
        except sqlite3.Error as e:
            logger.error(f"Failed to record activity for {msg.sender_nick} in {msg.target}: {e}")

    async def _deliver_pending(self, msg: InboundMessage) -> None:
        """
        转交发言者在该频道中所有未投递的留言。

        每条留言独立处理：先发送，再把该行标记为已投递。
        某一条失败不会影响其余留言。
        """
        try:
            entries = await self.services.mailbox.pending_for(msg.sender_nick, msg.target)
        except sqlite3.Error as e:
            logger.error(f"Failed to load pending messages for {msg.sender_nick} in {msg.target}: {e}")
            return

        for entry in entries:
            try:
                text = format_delivery(msg.sender_nick, entry, self.services.bot.timestamp_format)
                await self.bus.send_text(msg.target, text)
                if not await self.services.mailbox.mark_delivered(entry.id):
                    logger.warning(f"Message #{entry.id} was already delivered")
            except Exception as e:
                logger.error(f"Failed to deliver message #{entry.id} to {msg.sender_nick}: {e}")
                continue
            logger.info(f"Delivered message #{entry.id} from {entry.sender} to {msg.sender_nick}")

    async def process_direct(self, sender_nick: str, target: str, content: str) -> list[str]:
        """
        直接处理一条消息并收集产生的回复（用于CLI）。

        调用方需要保证此时没有其他消费者在读取出站队列。

        Args:
            sender_nick: 发送者昵称
            target: 频道名称
            content: 消息文本

        Returns:
            按发送顺序排列的回复文本
        """
        await self.handle(InboundMessage(sender_nick=sender_nick, target=target, content=content))
        replies = []
        while self.bus.outbound_size:
            out = await self.bus.consume_outbound()
            replies.append(out.content)
        return replies
