"""SQLite数据库连接与模式管理。

每次操作都会打开一个独立的aiosqlite连接，连接工作在自动提交模式下，
单条语句即为一个原子操作。需要"先检查后写入"的场景使用
transaction()，它以BEGIN IMMEDIATE开启事务，在事务开始时就获得写锁，
从而把并发的写入者串行化。
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite
from loguru import logger

from tellbot.errors import SchemaVersionError
from tellbot.utils.helpers import ensure_dir

SCHEMA = """
CREATE TABLE IF NOT EXISTS user_activity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    nickname TEXT NOT NULL,
    channel TEXT NOT NULL,
    last_message TEXT NOT NULL,
    last_seen TEXT NOT NULL,
    UNIQUE (nickname, channel)
);
CREATE TABLE IF NOT EXISTS tell_messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sender TEXT NOT NULL,
    recipient TEXT NOT NULL,
    channel TEXT NOT NULL,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL,
    delivered INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_tell_recipient_delivered ON tell_messages (recipient, delivered);
CREATE INDEX IF NOT EXISTS idx_activity_nickname ON user_activity (nickname);
"""


class Database:
    """
    tellbot的持久化层。

    负责创建数据库文件和表结构，并为活动记录和留言箱提供连接。
    本身不缓存任何数据，所有读取都直接查询SQLite。
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path, busy_timeout_ms: int = 5000) -> None:
        self.db_path = Path(db_path)
        self.busy_timeout_ms = max(0, min(busy_timeout_ms, 60000))

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        打开一个自动提交模式的连接。

        Yields:
            aiosqlite连接，行以aiosqlite.Row返回
        """
        async with aiosqlite.connect(self.db_path, isolation_level=None) as db:
            db.row_factory = aiosqlite.Row
            if self.busy_timeout_ms > 0:
                await db.execute(f"PRAGMA busy_timeout={self.busy_timeout_ms}")
            yield db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        打开一个持有写锁的事务。

        正常退出时提交，出现任何异常时回滚并重新抛出。

        Yields:
            处于事务中的aiosqlite连接
        """
        async with self.connect() as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                yield db
            except BaseException:
                await db.execute("ROLLBACK")
                raise
            await db.execute("COMMIT")

    async def init(self) -> None:
        """
        创建数据库文件和表结构。

        这是启动时唯一允许失败即退出的操作。

        Raises:
            SchemaVersionError: 数据库由更新版本的tellbot创建
        """
        ensure_dir(self.db_path.parent)
        async with self.connect() as db:
            await db.execute("PRAGMA journal_mode=WAL")
            async with db.execute("PRAGMA user_version") as cursor:
                row = await cursor.fetchone()
            version = int(row[0]) if row else 0

            if version > self.SCHEMA_VERSION:
                raise SchemaVersionError(
                    "SQLite schema version mismatch detected (database is newer than this bot build). "
                    f"Found user_version={version}, supported={self.SCHEMA_VERSION}."
                )

            await db.executescript(SCHEMA)
            if version != self.SCHEMA_VERSION:
                await db.execute(f"PRAGMA user_version = {self.SCHEMA_VERSION}")

        logger.info(f"Database ready at {self.db_path}")

    async def ping(self) -> None:
        """执行一次简单查询，确认数据库可用。"""
        async with self.connect() as db:
            await db.execute("SELECT 1")
