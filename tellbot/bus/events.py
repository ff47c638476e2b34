"""消息总线的事件类型。

此模块定义了消息总线使用的数据结构：
- InboundMessage: 从IRC连接接收的消息事件
- OutboundMessage: 要发送到频道或用户的文本
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# IRC频道名称的前缀字符（RFC 2811）
CHANNEL_MARKERS = ("#", "&", "+", "!")


@dataclass
class InboundMessage:
    """
    从传输层接收的消息事件。

    每条PRIVMSG都会被转换为一个InboundMessage，由事件路由器按顺序消费。
    target可以是频道名称，也可以是机器人自己的昵称（私聊）。
    """

    sender_nick: str  # 发送者昵称（保留原始大小写）
    target: str  # 频道名称或私聊目标
    content: str  # 原始消息文本
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))  # 接收时间（UTC）
    metadata: dict[str, Any] = field(default_factory=dict)  # 传输层特定的元数据（例如user@host）

    @property
    def is_channel_message(self) -> bool:
        """
        判断消息是否发送到多人频道。

        Returns:
            如果target以频道前缀开头返回True，私聊返回False
        """
        return self.target.startswith(CHANNEL_MARKERS)


@dataclass
class OutboundMessage:
    """要发送到频道或用户的消息。"""

    target: str  # 目标频道或昵称
    content: str  # 消息内容
    metadata: dict[str, Any] = field(default_factory=dict)
