"""传输渠道的基础接口。

此模块定义了传输渠道实现必须继承的抽象基类。
渠道负责连接聊天网络，把收到的消息转换为入站事件推入消息总线，
并把出站消息发送出去。
"""

from abc import ABC, abstractmethod
from typing import Any

from tellbot.bus.events import InboundMessage, OutboundMessage
from tellbot.bus.queue import MessageBus


class BaseChannel(ABC):
    """
    传输渠道实现的抽象基类。

    实现类需要：
    - 连接到聊天网络
    - 监听入站消息并通过_handle_message()转发到消息总线
    - 实现send()发送出站消息
    - 通过current_nick报告机器人当前使用的昵称
    """

    name: str = "base"  # 渠道名称

    def __init__(self, config: Any, bus: MessageBus):
        """
        初始化渠道。

        Args:
            config: 渠道特定的配置对象
            bus: 用于通信的消息总线
        """
        self.config = config
        self.bus = bus
        self._running = False  # 运行状态标志

    @abstractmethod
    async def start(self) -> None:
        """
        启动渠道并开始监听消息。

        这应该是一个长期运行的异步任务，断线后自行重连。
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """停止渠道并清理资源。"""
        pass

    @abstractmethod
    async def send(self, msg: OutboundMessage) -> None:
        """
        通过此渠道发送消息。

        Args:
            msg: 要发送的消息
        """
        pass

    @property
    @abstractmethod
    def current_nick(self) -> str:
        """机器人当前在网络上使用的昵称。"""
        pass

    async def _handle_message(
        self,
        sender_nick: str,
        target: str,
        content: str,
        metadata: dict[str, Any] | None = None
    ) -> None:
        """
        把来自聊天网络的消息转发到消息总线。

        Args:
            sender_nick: 发送者昵称
            target: 频道名称或私聊目标
            content: 消息文本内容
            metadata: 可选的渠道特定元数据
        """
        msg = InboundMessage(
            sender_nick=sender_nick,
            target=target,
            content=content,
            metadata=metadata or {}
        )

        await self.bus.publish_inbound(msg)

    @property
    def is_running(self) -> bool:
        """
        检查渠道是否正在运行。

        Returns:
            如果渠道正在运行返回True，否则返回False
        """
        return self._running
