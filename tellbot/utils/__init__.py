"""tellbot工具函数模块。"""

from tellbot.utils.helpers import ensure_dir, normalize_nick, utc_now

__all__ = ["ensure_dir", "normalize_nick", "utc_now"]
