"""渠道管理器，用于协调传输渠道。

此模块实现了渠道管理器，负责：
- 根据配置初始化IRC渠道
- 启动和停止渠道
- 把出站队列中的消息交给渠道发送
"""

from __future__ import annotations

import asyncio

from loguru import logger

from tellbot.bus.queue import MessageBus
from tellbot.channels.base import BaseChannel
from tellbot.config.schema import Config


class ChannelManager:
    """
    管理传输渠道并分发出站消息。

    出站消息的发送不等待确认：分发器从队列取出消息后交给渠道，
    发送失败只记录日志。
    """

    def __init__(self, config: Config, bus: MessageBus, channel: BaseChannel | None = None):
        """
        初始化渠道管理器。

        Args:
            config: 配置对象
            bus: 消息总线
            channel: 可选的渠道实例，未提供时根据配置创建IRC渠道
        """
        self.config = config
        self.bus = bus
        self.channel: BaseChannel | None = channel
        self._dispatch_task: asyncio.Task | None = None  # 消息分发任务

        if self.channel is None:
            self._init_channel()

    def _init_channel(self) -> None:
        """根据配置创建IRC渠道。"""
        if self.config.irc.enabled:
            from tellbot.channels.irc import IrcChannel
            self.channel = IrcChannel(self.config.irc, self.bus)
            logger.info(f"IRC channel enabled ({self.config.irc.server}:{self.config.irc.port})")

    def current_nick(self) -> str:
        """
        获取机器人当前的昵称。

        Returns:
            渠道报告的昵称，没有渠道时返回配置中的昵称
        """
        if self.channel is None:
            return self.config.irc.nick
        return self.channel.current_nick

    async def start_all(self) -> None:
        """
        启动出站分发器和渠道。

        渠道任务会一直运行，直到被停止。
        """
        if self.channel is None:
            logger.warning("No channels enabled")
            return

        self._dispatch_task = asyncio.create_task(self._dispatch_outbound())

        logger.info(f"Starting {self.channel.name} channel...")
        try:
            await self.channel.start()
        except Exception as e:
            logger.error(f"Failed to start channel {self.channel.name}: {e}")

    async def stop_all(self) -> None:
        """停止分发器和渠道。"""
        logger.info("Stopping all channels...")

        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
            self._dispatch_task = None

        if self.channel:
            try:
                await self.channel.stop()
                logger.info(f"Stopped {self.channel.name} channel")
            except Exception as e:
                logger.error(f"Error stopping {self.channel.name}: {e}")

    async def _dispatch_outbound(self) -> None:
        """从消息总线消费出站消息并交给渠道发送。"""
        logger.info("Outbound dispatcher started")

        while True:
            try:
                msg = await asyncio.wait_for(self.bus.consume_outbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                await self.channel.send(msg)
            except Exception as e:
                logger.error(f"Error sending to {msg.target}: {e}")
