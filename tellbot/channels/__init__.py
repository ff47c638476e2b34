"""传输渠道模块。

此模块提供了传输渠道的基础接口、IRC实现和渠道管理器。
"""

from tellbot.channels.base import BaseChannel
from tellbot.channels.manager import ChannelManager

__all__ = ["BaseChannel", "ChannelManager"]
