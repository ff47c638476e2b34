"""消息总线模块，用于解耦IRC连接与事件路由器。

通过两个asyncio队列传递入站事件和出站消息，
使得传输层和核心处理逻辑可以独立运行。
"""

from tellbot.bus.events import InboundMessage, OutboundMessage
from tellbot.bus.queue import MessageBus

__all__ = ["MessageBus", "InboundMessage", "OutboundMessage"]
