"""用户活动记录。

每个(昵称, 频道)只保存一行，记录该用户在频道中最后一次发言的内容和时间。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tellbot.storage.database import Database
from tellbot.utils.helpers import from_db_timestamp, normalize_nick, to_db_timestamp, utc_now


@dataclass
class ActivityRecord:
    """某个用户在某个频道中的最后一次活动。"""

    nickname: str
    channel: str
    last_message: str
    last_seen: datetime


class ActivityTracker:
    """
    活动记录的读写接口。

    写入使用SQLite的UPSERT，对已有的(昵称, 频道)原地更新，不会产生重复行。
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def record(
        self,
        nickname: str,
        channel: str,
        message: str,
        seen_at: datetime | None = None,
    ) -> None:
        """
        记录一次频道发言。

        Args:
            nickname: 发言者昵称（会被转换为小写）
            channel: 频道名称
            message: 发言内容
            seen_at: 发言时间，默认为当前UTC时间
        """
        seen = to_db_timestamp(seen_at or utc_now())
        async with self.db.connect() as db:
            await db.execute(
                """
                INSERT INTO user_activity (nickname, channel, last_message, last_seen)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (nickname, channel) DO UPDATE SET
                    last_message = excluded.last_message,
                    last_seen = excluded.last_seen
                """,
                (normalize_nick(nickname), channel, message, seen),
            )

    async def last_seen(self, nickname: str, channel: str) -> ActivityRecord | None:
        """
        查询用户在频道中的最近一次活动。

        Args:
            nickname: 要查询的昵称（不区分大小写）
            channel: 频道名称

        Returns:
            活动记录，如果从未见过该用户则返回None
        """
        async with self.db.connect() as db:
            async with db.execute(
                """
                SELECT nickname, channel, last_message, last_seen
                FROM user_activity
                WHERE nickname = ? AND channel = ?
                ORDER BY last_seen DESC
                LIMIT 1
                """,
                (normalize_nick(nickname), channel),
            ) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return None
        return ActivityRecord(
            nickname=row["nickname"],
            channel=row["channel"],
            last_message=row["last_message"],
            last_seen=from_db_timestamp(row["last_seen"]),
        )

    async def count(self) -> int:
        """返回活动记录的总行数。"""
        async with self.db.connect() as db:
            async with db.execute("SELECT COUNT(*) FROM user_activity") as cursor:
                row = await cursor.fetchone()
        return int(row[0]) if row else 0
