"""留言箱：为不在场的用户保存消息，等对方下次在同一频道发言时转交。

状态机只有两个状态：pending -> delivered。
每条留言只会从未投递变为已投递一次，已投递的行作为历史保留，不会被删除。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from loguru import logger

from tellbot.errors import QuotaExceededError
from tellbot.storage.database import Database
from tellbot.utils.helpers import from_db_timestamp, normalize_nick, to_db_timestamp, utc_now

DEFAULT_QUOTA = 5


@dataclass
class MailboxEntry:
    """一条留言。"""

    id: int
    sender: str
    recipient: str
    channel: str
    message: str
    created_at: datetime
    delivered: bool = False


def _row_to_entry(row) -> MailboxEntry:
    return MailboxEntry(
        id=int(row["id"]),
        sender=row["sender"],
        recipient=row["recipient"],
        channel=row["channel"],
        message=row["message"],
        created_at=from_db_timestamp(row["created_at"]),
        delivered=bool(row["delivered"]),
    )


class MailboxStore:
    """
    留言箱的读写接口。

    对每个(发送者, 接收者, 频道)组合，未投递的留言数不会超过quota。
    配额检查和插入在同一个写事务中完成，
    因此并发的tell请求不会同时看到quota-1并各自插入。
    发送者比较不区分大小写，接收者在写入前统一转换为小写。
    """

    def __init__(self, db: Database, quota: int = DEFAULT_QUOTA) -> None:
        self.db = db
        self.quota = quota

    async def pending_count(self, sender: str, recipient: str, channel: str) -> int:
        """
        统计某个组合下未投递的留言数。

        Args:
            sender: 发送者昵称
            recipient: 接收者昵称
            channel: 频道名称

        Returns:
            未投递的留言数
        """
        async with self.db.connect() as db:
            return await self._pending_count(db, sender, recipient, channel)

    @staticmethod
    async def _pending_count(db, sender: str, recipient: str, channel: str) -> int:
        async with db.execute(
            """
            SELECT COUNT(*) FROM tell_messages
            WHERE LOWER(sender) = ? AND recipient = ? AND channel = ? AND delivered = 0
            """,
            (normalize_nick(sender), normalize_nick(recipient), channel),
        ) as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def queue(
        self,
        sender: str,
        recipient: str,
        channel: str,
        message: str,
        created_at: datetime | None = None,
    ) -> MailboxEntry:
        """
        保存一条新留言。

        Args:
            sender: 发送者昵称（保留原始大小写，用于转交时显示）
            recipient: 接收者昵称
            channel: 频道名称
            message: 留言内容
            created_at: 创建时间，默认为当前UTC时间

        Returns:
            新写入的留言

        Raises:
            QuotaExceededError: 未投递的留言数已达到配额，不会写入任何数据
        """
        created = created_at or utc_now()
        recipient_key = normalize_nick(recipient)

        async with self.db.transaction() as db:
            pending = await self._pending_count(db, sender, recipient_key, channel)
            if pending >= self.quota:
                raise QuotaExceededError(sender, recipient_key, channel, self.quota)
            cursor = await db.execute(
                """
                INSERT INTO tell_messages (sender, recipient, channel, message, created_at, delivered)
                VALUES (?, ?, ?, ?, ?, 0)
                """,
                (sender, recipient_key, channel, message, to_db_timestamp(created)),
            )
            entry_id = cursor.lastrowid
            await cursor.close()

        logger.debug(f"Queued message #{entry_id} from {sender} to {recipient_key} in {channel}")
        return MailboxEntry(
            id=int(entry_id),
            sender=sender,
            recipient=recipient_key,
            channel=channel,
            message=message,
            created_at=created,
        )

    async def pending_for(self, recipient: str, channel: str) -> list[MailboxEntry]:
        """
        获取接收者在频道中所有未投递的留言。

        Args:
            recipient: 接收者昵称（不区分大小写）
            channel: 频道名称

        Returns:
            按创建时间升序排列的留言列表
        """
        async with self.db.connect() as db:
            async with db.execute(
                """
                SELECT id, sender, recipient, channel, message, created_at, delivered
                FROM tell_messages
                WHERE recipient = ? AND channel = ? AND delivered = 0
                ORDER BY created_at ASC, id ASC
                """,
                (normalize_nick(recipient), channel),
            ) as cursor:
                rows = await cursor.fetchall()
        return [_row_to_entry(row) for row in rows]

    async def mark_delivered(self, entry_id: int) -> bool:
        """
        将单条留言标记为已投递。

        只有仍处于未投递状态的行会被更新。

        Args:
            entry_id: 留言ID

        Returns:
            如果本次调用完成了状态转换返回True，已经投递过则返回False
        """
        async with self.db.connect() as db:
            cursor = await db.execute(
                "UPDATE tell_messages SET delivered = 1 WHERE id = ? AND delivered = 0",
                (entry_id,),
            )
            changed = cursor.rowcount
            await cursor.close()
        return changed == 1

    async def get(self, entry_id: int) -> MailboxEntry | None:
        """根据ID读取一条留言。"""
        async with self.db.connect() as db:
            async with db.execute(
                """
                SELECT id, sender, recipient, channel, message, created_at, delivered
                FROM tell_messages WHERE id = ?
                """,
                (entry_id,),
            ) as cursor:
                row = await cursor.fetchone()
        return _row_to_entry(row) if row else None

    async def counts(self) -> dict[str, int]:
        """
        统计留言箱中的留言数量。

        Returns:
            包含pending和delivered两个键的字典
        """
        async with self.db.connect() as db:
            async with db.execute(
                "SELECT delivered, COUNT(*) FROM tell_messages GROUP BY delivered"
            ) as cursor:
                rows = await cursor.fetchall()
        result = {"pending": 0, "delivered": 0}
        for delivered, count in rows:
            result["delivered" if delivered else "pending"] = int(count)
        return result
