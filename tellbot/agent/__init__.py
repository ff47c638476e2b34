"""机器人核心模块。

此模块包含核心组件：
- EventRouter: 事件路由器，处理入站事件并分发命令
- Services: 启动时构建的共享服务对象
- CommandRegistry: 命令注册表
"""

from tellbot.agent.commands.registry import CommandRegistry, build_registry
from tellbot.agent.router import EventRouter
from tellbot.agent.services import Services

__all__ = ["EventRouter", "Services", "CommandRegistry", "build_registry"]
