"""前缀命令：基础类、注册表和内置命令。"""

from tellbot.agent.commands.base import Command
from tellbot.agent.commands.registry import AVAILABLE_COMMANDS, CommandRegistry, build_registry

__all__ = ["Command", "CommandRegistry", "AVAILABLE_COMMANDS", "build_registry"]
