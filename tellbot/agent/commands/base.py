"""聊天命令的基础类。

此模块定义了命令系统的抽象基类，所有命令都必须继承自Command类。
命令是用户通过前缀（默认"."）触发的能力，例如echo、seen、tell。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tellbot.agent.services import Services


class Command(ABC):
    """
    聊天命令的抽象基类。

    每个命令实例持有启动时创建的服务对象，
    通过execute()处理一次调用并返回要发回频道的文本。
    """

    name: str = ""  # 命令名称（小写，不含前缀）
    description: str = ""  # 简短说明
    arguments: str = ""  # 参数说明，用于生成用法提示

    def __init__(self, services: "Services"):
        """
        初始化命令。

        Args:
            services: 共享服务对象（存储与配置）
        """
        self.services = services

    @property
    def prefix(self) -> str:
        """当前配置的命令前缀。"""
        return self.services.bot.prefix

    @property
    def usage(self) -> str:
        """
        用法提示文本。

        Returns:
            例如"Usage: .echo <message>"
        """
        text = f"Usage: {self.prefix}{self.name}"
        if self.arguments:
            text += f" {self.arguments}"
        return text

    @abstractmethod
    async def execute(self, sender_nick: str, channel: str, args: list[str]) -> str | None:
        """
        执行命令。

        Args:
            sender_nick: 调用者昵称（原始大小写）
            channel: 命令所在的频道
            args: 命令名称之后的参数列表，顺序保持不变

        Returns:
            要发送到频道的回复，不需要回复时返回None
        """
        pass
