"""test命令：检查数据库是否可用。"""

import sqlite3

from loguru import logger

from tellbot.agent.commands.base import Command


class StorageCheckCommand(Command):
    name = "test"
    description = "check the database connection"

    async def execute(self, sender_nick: str, channel: str, args: list[str]) -> str | None:
        try:
            await self.services.db.ping()
        except sqlite3.Error as e:
            logger.error(f"Database ping failed: {e}")
            return "SQLite is not reachable."
        return "SQLite connected!"
