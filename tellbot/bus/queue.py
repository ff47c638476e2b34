"""用于解耦传输层和事件路由器的异步消息队列。

传输层（IRC连接）把入站事件推入队列，事件路由器是唯一的消费者，
因此每个事件都会在下一个事件开始之前处理完毕。
出站方向同样通过队列传递，发送方无需等待传输层确认。
"""

import asyncio

from tellbot.bus.events import InboundMessage, OutboundMessage


class MessageBus:
    """
    异步消息总线，用于解耦IRC连接和事件路由器。

    消息总线使用两个队列：
    - inbound队列：渠道推送事件到队列，事件路由器从队列消费
    - outbound队列：路由器和命令推送回复到队列，渠道管理器从队列消费
    """

    def __init__(self):
        """初始化消息总线，创建入站和出站队列。"""
        self.inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()  # 入站事件队列
        self.outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue()  # 出站消息队列

    async def publish_inbound(self, msg: InboundMessage) -> None:
        """
        发布来自渠道的事件到入站队列。

        Args:
            msg: 入站事件
        """
        await self.inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        """
        消费下一条入站事件（阻塞直到有事件可用）。

        Returns:
            下一条入站事件
        """
        return await self.inbound.get()

    async def publish_outbound(self, msg: OutboundMessage) -> None:
        """
        发布要发送的消息到出站队列。

        Args:
            msg: 出站消息
        """
        await self.outbound.put(msg)

    async def consume_outbound(self) -> OutboundMessage:
        """
        消费下一条出站消息（阻塞直到有消息可用）。

        Returns:
            下一条出站消息
        """
        return await self.outbound.get()

    async def send_text(self, target: str, content: str) -> None:
        """
        便捷方法：把一段文本发往指定频道或用户。

        Args:
            target: 频道名称或昵称
            content: 文本内容
        """
        await self.publish_outbound(OutboundMessage(target=target, content=content))

    @property
    def outbound_size(self) -> int:
        """获取待发送的出站消息数量。"""
        return self.outbound.qsize()
