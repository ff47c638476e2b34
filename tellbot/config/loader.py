"""配置加载工具。

此模块提供了配置文件的加载、保存和格式转换功能。
配置文件使用JSON格式，键名使用camelCase，
但在Python代码中使用snake_case（符合Pydantic规范）。
"""

import json
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from tellbot.config.schema import Config
from tellbot.utils.helpers import ensure_dir


def get_config_path() -> Path:
    """
    获取默认配置文件路径。

    Returns:
        配置文件路径（~/.tellbot/config.json）
    """
    return Path.home() / ".tellbot" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    从文件加载配置或创建默认配置。

    如果配置文件不存在或加载失败，会返回默认配置对象。
    加载时会自动进行配置迁移和键名转换（camelCase转snake_case）。

    Args:
        config_path: 可选的配置文件路径，如果未提供则使用默认路径

    Returns:
        加载的配置对象
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            data = _migrate_config(data)
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    保存配置到文件。

    保存前会将snake_case键名转换为camelCase。

    Args:
        config: 要保存的配置对象
        config_path: 可选的保存路径，如果未提供则使用默认路径
    """
    path = config_path or get_config_path()
    ensure_dir(path.parent)

    data = convert_to_camel(config.model_dump())

    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def _migrate_config(data: dict) -> dict:
    """
    迁移旧配置格式到当前格式。

    早期版本只支持一个频道（irc.channel字符串），
    这里将其转换为irc.channels列表。

    Args:
        data: 配置数据字典

    Returns:
        迁移后的配置数据
    """
    irc = data.get("irc", {})
    if "channel" in irc and "channels" not in irc:
        irc["channels"] = [irc.pop("channel")]
    return data


def convert_keys(data: Any) -> Any:
    """
    将camelCase键名递归转换为snake_case（用于Pydantic）。

    Args:
        data: 要转换的数据（可以是字典、列表或其他类型）

    Returns:
        转换后的数据
    """
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """将snake_case键名递归转换为camelCase。"""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """
    将camelCase转换为snake_case。

    例如：tellQuota -> tell_quota

    Args:
        name: camelCase字符串

    Returns:
        snake_case字符串
    """
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """
    将snake_case转换为camelCase。

    例如：busy_timeout_ms -> busyTimeoutMs

    Args:
        name: snake_case字符串

    Returns:
        camelCase字符串
    """
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
