"""命令注册表。

注册表在启动时根据配置中启用的命令列表构建一次，
之后被冻结，运行期间不再允许注册或注销命令。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

from loguru import logger

from tellbot.agent.commands.base import Command
from tellbot.agent.commands.dbcheck import StorageCheckCommand
from tellbot.agent.commands.echo import EchoCommand
from tellbot.agent.commands.help import HelpCommand
from tellbot.agent.commands.seen import SeenCommand
from tellbot.agent.commands.tell import TellCommand

if TYPE_CHECKING:
    from tellbot.agent.services import Services

# 所有可用的命令，配置中的名称从这里解析
AVAILABLE_COMMANDS: dict[str, type[Command]] = {
    cls.name: cls
    for cls in (EchoCommand, HelpCommand, SeenCommand, TellCommand, StorageCheckCommand)
}


class CommandRegistry:
    """
    命令名称到命令对象的映射。

    查找不区分大小写，按名称精确匹配。
    """

    def __init__(self):
        """初始化空的命令注册表。"""
        self._commands: dict[str, Command] = {}  # 键为小写命令名称
        self._frozen = False

    def register(self, command: Command) -> None:
        """
        注册一个命令。

        Args:
            command: 要注册的命令对象

        Raises:
            RuntimeError: 注册表已冻结
            ValueError: 同名命令已存在
        """
        if self._frozen:
            raise RuntimeError("Command registry is frozen")
        key = command.name.lower()
        if key in self._commands:
            raise ValueError(f"Command '{key}' is already registered")
        self._commands[key] = command

    def freeze(self) -> None:
        """冻结注册表，此后注册表只读。"""
        self._frozen = True

    def get(self, name: str) -> Command | None:
        """
        根据名称获取命令。

        Args:
            name: 命令名称（不区分大小写，不含前缀）

        Returns:
            命令对象，如果未找到则返回None
        """
        return self._commands.get(name.lower())

    @property
    def names(self) -> list[str]:
        """按注册顺序返回所有命令名称。"""
        return list(self._commands.keys())

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._commands

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())


def build_registry(services: "Services", enabled: list[str] | None = None) -> CommandRegistry:
    """
    根据启用的命令列表构建并冻结注册表。

    Args:
        services: 共享服务对象
        enabled: 启用的命令名称，默认使用services.bot.commands

    Returns:
        已冻结的命令注册表

    Raises:
        ValueError: 列表中包含未知的命令名称
    """
    names = enabled if enabled is not None else services.bot.commands
    registry = CommandRegistry()
    for name in names:
        cls = AVAILABLE_COMMANDS.get(name.lower())
        if cls is None:
            known = ", ".join(sorted(AVAILABLE_COMMANDS))
            raise ValueError(f"Unknown command '{name}' in configuration (available: {known})")
        registry.register(cls(services))

    for command in registry:
        if isinstance(command, HelpCommand):
            command.registry = registry

    registry.freeze()
    logger.info(f"Commands enabled: {', '.join(registry.names) or '(none)'}")
    return registry
