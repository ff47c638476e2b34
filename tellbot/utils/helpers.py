"""tellbot的实用工具函数。

此模块提供了路径管理、昵称规范化、时间格式化等常见操作。
"""

from datetime import datetime, timezone
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """
    确保目录存在，如果不存在则创建。

    Args:
        path: 目录路径

    Returns:
        目录路径（确保已存在）
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def normalize_nick(nick: str) -> str:
    """
    规范化昵称，用作存储中的键。

    IRC昵称不区分大小写，这里统一转换为小写并去掉首尾空白。

    Args:
        nick: 原始昵称

    Returns:
        规范化后的昵称
    """
    return nick.strip().lower()


def utc_now() -> datetime:
    """获取带时区信息的当前UTC时间。"""
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """
    将时间转换为存储格式（UTC下的ISO-8601字符串）。

    所有时间都以同一时区保存，因此字符串的字典序与时间先后一致。

    Args:
        value: 时间对象，不带时区的时间视为UTC

    Returns:
        ISO-8601字符串
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: str) -> datetime:
    """将存储中的ISO-8601字符串解析为UTC时间。"""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime, fmt: str = "%Y-%m-%d %H:%M:%S UTC") -> str:
    """按给定格式输出UTC时间，用于聊天回复。"""
    return value.astimezone(timezone.utc).strftime(fmt)


def truncate_string(s: str, max_len: int = 100, suffix: str = "...") -> str:
    """
    截断字符串到最大长度，如果被截断则添加后缀。

    Args:
        s: 要截断的字符串
        max_len: 最大长度，默认为100
        suffix: 截断时添加的后缀，默认为"..."

    Returns:
        截断后的字符串
    """
    if len(s) <= max_len:
        return s
    return s[: max_len - len(suffix)] + suffix
