"""help命令：列出当前启用的命令。"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tellbot.agent.commands.base import Command

if TYPE_CHECKING:
    from tellbot.agent.commands.registry import CommandRegistry


class HelpCommand(Command):
    """
    列出可用命令。

    命令列表在注册表构建完成后确定，运行期间不会变化。
    """

    name = "help"
    description = "list available commands"

    registry: "CommandRegistry | None" = None  # 由build_registry注入

    async def execute(self, sender_nick: str, channel: str, args: list[str]) -> str | None:
        names = self.registry.names if self.registry is not None else [self.name]
        listed = ", ".join(f"{self.prefix}{name}" for name in names)
        return f"Available commands: {listed}"
